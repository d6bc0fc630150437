"""
Burn Fee Tiers

Each account resolves to a tier that fixes the share of every outgoing
transfer that is burned, in basis points. Accounts without an explicit
tier fall back to the registry's default tier.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .errors import InvalidFee
from .units import BPS_DENOMINATOR


@dataclass(frozen=True)
class Tier:
    """Named burn-fee profile"""
    transaction_burn_fee_bps: int
    name: str = "custom"

    def __post_init__(self):
        validate_fee_bps(self.transaction_burn_fee_bps)

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'transaction_burn_fee_bps': self.transaction_burn_fee_bps
        }


def validate_fee_bps(fee_bps) -> None:
    """Raise InvalidFee unless fee_bps is an int in [0, 10000]"""
    if isinstance(fee_bps, bool) or not isinstance(fee_bps, int):
        raise InvalidFee(f"Burn fee must be an integer number of basis points, got {fee_bps!r}")
    if fee_bps < 0 or fee_bps > BPS_DENOMINATOR:
        raise InvalidFee(f"Burn fee {fee_bps} bps outside 0..{BPS_DENOMINATOR}")


class TierRegistry:
    """Maps accounts to burn-fee tiers"""

    def __init__(self, default_tier: Optional[Tier] = None):
        self.default_tier = default_tier or Tier(10, "default")
        self._tiers: Dict[str, Tier] = {}

    def set_tier(self, account: str, fee_bps: int, name: Optional[str] = None) -> Tier:
        """
        Assign an explicit tier to an account, replacing any previous one.

        Raises:
            InvalidFee: If fee_bps is not an integer in [0, 10000]
        """
        tier = Tier(fee_bps, name or "custom")
        self._tiers[account] = tier
        return tier

    def clear_tier(self, account: str) -> bool:
        """Drop the explicit tier; returns False if there was none"""
        return self._tiers.pop(account, None) is not None

    def get_user_tier(self, account: str) -> Tier:
        return self._tiers.get(account, self.default_tier)

    def fee_for(self, account: str) -> int:
        """Effective burn fee for transfers sent by this account"""
        return self.get_user_tier(account).transaction_burn_fee_bps

    def has_explicit_tier(self, account: str) -> bool:
        return account in self._tiers

    def explicit_tiers(self) -> Dict[str, Tier]:
        return dict(self._tiers)
