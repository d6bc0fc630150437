"""
Token Ledger HTTP API

FastAPI surface over a TokenLedger. The acting account is read from the
X-Caller header. Amounts travel as base-unit integers and are returned as
decimal strings so 18-decimal values survive JSON clients.
"""

from typing import Dict, Any, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .errors import (
    LedgerError, AlreadyInitialized, NotInitialized, Unauthorized, Paused,
    Blacklisted, InsufficientBalance, InsufficientAllowance, InvalidFee,
    InvalidAmount, StorageFailure
)
from .ledger import TransferReceipt
from .system import TokenLedger
from .units import from_base_units


ERROR_STATUS = {
    AlreadyInitialized: 409,
    NotInitialized: 409,
    Unauthorized: 403,
    Paused: 423,
    Blacklisted: 403,
    InsufficientBalance: 409,
    InsufficientAllowance: 409,
    InvalidFee: 400,
    InvalidAmount: 400,
    StorageFailure: 503,
}


class InitializeRequest(BaseModel):
    name: str
    symbol: str
    max_supply: int = Field(ge=0)


class TransferRequest(BaseModel):
    to: str
    amount: int


class TransferFromRequest(BaseModel):
    owner: str
    to: str
    amount: int


class ApprovalRequest(BaseModel):
    spender: str
    amount: int


class TierRequest(BaseModel):
    transaction_burn_fee_bps: int
    name: Optional[str] = None


def get_ledger(request: Request) -> TokenLedger:
    return request.app.state.ledger


def get_caller(x_caller: str = Header(..., alias="X-Caller")) -> str:
    return x_caller


def receipt_response(receipt: TransferReceipt) -> Dict[str, Any]:
    return receipt.to_dict()


router = APIRouter()
admin_router = APIRouter()


@router.post("/initialize")
async def initialize(
    request: InitializeRequest,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    """Mint the full supply to the caller, who becomes the authority"""
    ledger.initialize(caller, request.name, request.symbol, request.max_supply)
    return {"authority": caller, "total_supply": str(ledger.total_supply())}


@router.get("/token")
async def token_info(ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    return {
        "name": ledger.name,
        "symbol": ledger.symbol,
        "decimals": ledger.decimals,
        "authority": ledger.authority,
        "paused": ledger.paused,
        "initialized": ledger.is_initialized,
    }


@router.get("/balances/{account}")
async def balance_of(account: str, ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    balance = ledger.balance_of(account)
    return {
        "account": account,
        "balance": str(balance),
        "balance_tokens": str(from_base_units(balance)),
    }


@router.get("/supply")
async def total_supply(ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    return {
        "total_supply": str(ledger.total_supply()),
        "burned_total": str(ledger.burned_total()),
    }


@router.post("/transfers")
async def transfer(
    request: TransferRequest,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    return receipt_response(ledger.transfer(caller, request.to, request.amount))


@router.post("/transfers/from")
async def transfer_from(
    request: TransferFromRequest,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    return receipt_response(ledger.transfer_from(caller, request.owner, request.to, request.amount))


@router.post("/approvals")
async def approve(
    request: ApprovalRequest,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    ledger.approve(caller, request.spender, request.amount)
    return {"owner": caller, "spender": request.spender, "amount": str(request.amount)}


@router.get("/allowances/{owner}/{spender}")
async def allowance(owner: str, spender: str, ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    return {"owner": owner, "spender": spender, "amount": str(ledger.allowance(owner, spender))}


@router.get("/tiers/{account}")
async def get_user_tier(account: str, ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    return ledger.get_user_tier(account).to_dict()


@router.get("/access/{account}")
async def access_status(account: str, ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    return {
        "account": account,
        "blacklisted": ledger.is_blacklisted(account),
        "skip_burn_fee": ledger.is_skip_burn_fee(account),
        "paused": ledger.paused,
    }


@admin_router.post("/pause")
async def pause(caller: str = Depends(get_caller), ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    ledger.pause(caller)
    return {"paused": ledger.paused}


@admin_router.post("/unpause")
async def unpause(caller: str = Depends(get_caller), ledger: TokenLedger = Depends(get_ledger)) -> Dict[str, Any]:
    ledger.unpause(caller)
    return {"paused": ledger.paused}


@admin_router.put("/blacklist/{account}")
async def add_to_blacklist(
    account: str,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    ledger.add_to_blacklist(caller, account)
    return {"account": account, "blacklisted": True}


@admin_router.delete("/blacklist/{account}")
async def remove_from_blacklist(
    account: str,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    ledger.remove_from_blacklist(caller, account)
    return {"account": account, "blacklisted": False}


@admin_router.put("/skip-burn-fees/{account}")
async def add_to_skip_burn_fees_list(
    account: str,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    ledger.add_to_skip_burn_fees_list(caller, account)
    return {"account": account, "skip_burn_fee": True}


@admin_router.delete("/skip-burn-fees/{account}")
async def remove_from_skip_burn_fees_list(
    account: str,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    ledger.remove_from_skip_burn_fees_list(caller, account)
    return {"account": account, "skip_burn_fee": False}


@admin_router.put("/tiers/{account}")
async def set_tier(
    account: str,
    request: TierRequest,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    tier = ledger.set_tier(caller, account, request.transaction_burn_fee_bps, request.name)
    return {"account": account, **tier.to_dict()}


@admin_router.delete("/tiers/{account}")
async def clear_tier(
    account: str,
    caller: str = Depends(get_caller),
    ledger: TokenLedger = Depends(get_ledger)
) -> Dict[str, Any]:
    ledger.clear_tier(caller, account)
    return {"account": account, **ledger.get_user_tier(account).to_dict()}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(status_code=status_code, content={"error": exc.error, "detail": str(exc)})


def create_app(ledger: Optional[TokenLedger] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Tiered Burn Ledger API",
        description="Token ledger with tiered transfer burns, blacklist and pause controls",
        version="1.0.0"
    )
    app.state.ledger = ledger or TokenLedger()
    app.add_exception_handler(LedgerError, ledger_error_handler)

    app.include_router(router, tags=["Ledger"])
    app.include_router(admin_router, prefix="/admin", tags=["Admin"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        current = app.state.ledger
        return {
            "status": "healthy",
            "initialized": current.is_initialized,
            "paused": current.paused,
            "audit_events": current.audit_trail.count_events(),
        }

    return app


def run_server(host: str = "0.0.0.0", port: int = 8090) -> None:
    """Run the FastAPI server"""
    uvicorn.run(create_app(), host=host, port=port, log_level="info")
