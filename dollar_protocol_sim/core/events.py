#!/usr/bin/env python3
"""
Regulation events. Exactly one is produced per regulated epoch.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Union

from .fixed_point import format_fixed


@dataclass(frozen=True)
class SupplyIncrease:
    """Expansion: new supply was minted and routed"""
    epoch: int
    price: int  # 18-decimal fixed point
    new_redeemable: int
    less_debt: int  # debt still outstanding after the step
    new_bonded: int  # minted amount not used for coupon redemption

    name = "SupplyIncrease"

    def to_dict(self) -> Dict:
        return {"event": self.name, **asdict(self)}

    def __str__(self) -> str:
        return (
            f"SupplyIncrease(epoch={self.epoch}, price={format_fixed(self.price)}, "
            f"new_redeemable={self.new_redeemable}, less_debt={self.less_debt}, "
            f"new_bonded={self.new_bonded})"
        )


@dataclass(frozen=True)
class SupplyDecrease:
    """Contraction: debt was recorded"""
    epoch: int
    price: int
    new_debt: int

    name = "SupplyDecrease"

    def to_dict(self) -> Dict:
        return {"event": self.name, **asdict(self)}

    def __str__(self) -> str:
        return f"SupplyDecrease(epoch={self.epoch}, price={format_fixed(self.price)}, new_debt={self.new_debt})"


@dataclass(frozen=True)
class SupplyNeutral:
    epoch: int

    name = "SupplyNeutral"

    def to_dict(self) -> Dict:
        return {"event": self.name, **asdict(self)}


RegulationEvent = Union[SupplyIncrease, SupplyDecrease, SupplyNeutral]
