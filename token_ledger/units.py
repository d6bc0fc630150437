"""
Token Unit Conversion

Balances are integers of base units with 18 implied decimal places.
Human-facing amounts are converted through Decimal, NEVER float, so
conversions are exact.
"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from .errors import InvalidAmount

DECIMALS = 18
UNIT = 10 ** DECIMALS

# Basis-point denominator for burn fees (10000 bps = 100%)
BPS_DENOMINATOR = 10_000


def to_base_units(value: Union[Decimal, str, int]) -> int:
    """
    Convert a whole-token amount to integer base units.
    
    Args:
        value: Token amount such as "39.96", Decimal('40') or 40
        
    Returns:
        Amount in base units
        
    Raises:
        InvalidAmount: If the value is not a number, is negative, or has
            more than 18 decimal places
    """
    if isinstance(value, float):
        raise InvalidAmount("Token amounts must not be floats")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise InvalidAmount(f"Invalid token amount: {value!r}")
    
    if not amount.is_finite() or amount < 0:
        raise InvalidAmount(f"Invalid token amount: {value!r}")
    
    with localcontext() as ctx:
        ctx.prec = 96
        scaled = amount.scaleb(DECIMALS)
    if scaled != scaled.to_integral_value():
        raise InvalidAmount(f"Token amount {value} exceeds {DECIMALS} decimal places")
    return int(scaled)


def from_base_units(amount: int) -> Decimal:
    """Convert integer base units to a Decimal token amount"""
    with localcontext() as ctx:
        ctx.prec = 96
        return Decimal(amount).scaleb(-DECIMALS)


def burn_fee(amount: int, fee_bps: int) -> int:
    """Burn fee for a transfer, truncated toward zero"""
    return amount * fee_bps // BPS_DENOMINATOR
