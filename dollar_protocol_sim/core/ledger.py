#!/usr/bin/env python3
"""
Ledger State

Accounting totals of the Dollar protocol plus the per-account coupon book.
The regulator mutates only working copies; a committed LedgerState is never
modified in place.
"""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

from .errors import InconsistentLedger
from .fixed_point import MAX_UINT256


logger = logging.getLogger(__name__)

CouponKey = Tuple[str, int]

COUNTER_FIELDS = (
    "total_supply",
    "total_bonded",
    "total_staged",
    "total_debt",
    "total_coupons_issued",
    "total_coupons_redeemed",
    "total_redeemable",
)


@dataclass
class LedgerState:
    """Protocol-wide totals and coupon balances keyed by (account name, epoch)"""
    total_supply: int = 0
    total_bonded: int = 0
    total_staged: int = 0
    total_debt: int = 0
    total_coupons_issued: int = 0
    total_coupons_redeemed: int = 0
    total_redeemable: int = 0
    coupon_balances: Dict[CouponKey, int] = field(default_factory=dict)
    current_epoch: int = 0
    last_regulated_epoch: Optional[int] = None

    @classmethod
    def initial(cls) -> "LedgerState":
        return cls()

    def copy(self) -> "LedgerState":
        """Independent working copy"""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["coupon_balances"] = dict(self.coupon_balances)
        return LedgerState(**values)

    # Derived quantities

    def net_supply(self) -> int:
        """Base for expansion deltas"""
        return self.total_bonded + self.total_staged + self.total_supply

    def net_supply_ex_debt(self) -> int:
        """Base for contraction deltas, clamped at zero"""
        return max(0, self.net_supply() - self.total_debt)

    def outstanding_coupons(self) -> int:
        """Coupon principal issued and not yet paid out"""
        return self.total_coupons_issued - self.total_coupons_redeemed

    def unfunded_coupons(self) -> int:
        """Outstanding coupons that have no redeemable supply behind them yet"""
        return max(0, self.outstanding_coupons() - self.total_redeemable)

    # Read-only accessors

    def balance_of_coupons(self, account: Any, epoch: Any) -> int:
        """Coupon principal for one account/batch; unknown keys read as zero"""
        try:
            return self.coupon_balances.get((account, epoch), 0)
        except TypeError:
            # Unhashable key
            return 0

    def coupon_balances_of(self, account: Any) -> Dict[int, int]:
        return {
            epoch: amount
            for (holder, epoch), amount in self.coupon_balances.items()
            if holder == account and amount > 0
        }

    def totals(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in COUNTER_FIELDS}

    # Invariants

    def violations(self) -> List[str]:
        """Every invariant the state currently breaks"""
        problems = []

        for name in COUNTER_FIELDS:
            value = getattr(self, name)
            if value < 0:
                problems.append(f"{name} is negative ({value})")
            elif value > MAX_UINT256:
                problems.append(f"{name} exceeds uint256")

        for key, amount in self.coupon_balances.items():
            if amount < 0:
                problems.append(f"coupon balance {key} is negative ({amount})")

        outstanding = self.outstanding_coupons()
        if self.total_redeemable > outstanding:
            problems.append(
                f"total_redeemable {self.total_redeemable} exceeds outstanding coupons {outstanding}"
            )

        booked = sum(self.coupon_balances.values())
        if booked > outstanding:
            problems.append(
                f"coupon balances sum to {booked} but only {outstanding} coupons are outstanding"
            )

        if self.total_debt > self.net_supply():
            problems.append(
                f"total_debt {self.total_debt} exceeds net supply {self.net_supply()}"
            )

        if self.last_regulated_epoch is not None and self.last_regulated_epoch > self.current_epoch:
            problems.append(
                f"last regulated epoch {self.last_regulated_epoch} is ahead of "
                f"current epoch {self.current_epoch}"
            )

        return problems

    def check_invariants(self):
        """Raise InconsistentLedger if any invariant is broken"""
        problems = self.violations()
        if problems:
            for problem in problems:
                logger.error("Ledger invariant violated at epoch %s: %s", self.current_epoch, problem)
            raise InconsistentLedger("; ".join(problems))

    # Persistence

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = self.totals()
        data["current_epoch"] = self.current_epoch
        data["last_regulated_epoch"] = self.last_regulated_epoch
        data["coupon_balances"] = [
            {"account": account, "epoch": epoch, "amount": amount}
            for (account, epoch), amount in sorted(self.coupon_balances.items())
        ]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerState":
        state = cls(**{name: int(data.get(name, 0)) for name in COUNTER_FIELDS})
        state.current_epoch = int(data.get("current_epoch", 0))
        last = data.get("last_regulated_epoch")
        state.last_regulated_epoch = None if last is None else int(last)
        for entry in data.get("coupon_balances", []):
            key = (str(entry["account"]), int(entry["epoch"]))
            state.coupon_balances[key] = int(entry["amount"])
        return state
