#!/usr/bin/env python3
"""
Reward Router

Splits an expansion mint between coupon redemption, the liquidity incentive
pool and the bonded reserve.
"""

from dataclasses import dataclass

from .coupons import redeem_debt
from .fixed_point import add, checked, mul_percent, sub
from .ledger import LedgerState
from ..engine.config import RegulatorConfig


@dataclass(frozen=True)
class RewardSplit:
    """Where one expansion mint went"""
    to_redeemable: int = 0
    to_incentive_pool: int = 0
    to_bonded: int = 0

    @property
    def total(self) -> int:
        return self.to_redeemable + self.to_incentive_pool + self.to_bonded

    def to_dict(self) -> dict:
        return {
            "to_redeemable": self.to_redeemable,
            "to_incentive_pool": self.to_incentive_pool,
            "to_bonded": self.to_bonded,
        }


class RewardRouter:
    """Routes newly minted supply according to the configured ratios"""

    def __init__(self, config: RegulatorConfig):
        self.config = config

    def route(self, ledger: LedgerState, minted_amount: int) -> RewardSplit:
        checked(minted_amount)
        if minted_amount == 0:
            return RewardSplit()

        # Whole mint enters free supply, then leaves it as it is attributed
        ledger.total_supply = add(ledger.total_supply, minted_amount)

        if ledger.total_debt > 0 or ledger.unfunded_coupons() > 0:
            split = self._route_with_debt(ledger, minted_amount)
        else:
            split = self._route_without_debt(minted_amount)

        ledger.total_bonded = add(ledger.total_bonded, split.to_bonded)
        ledger.total_supply = sub(ledger.total_supply, split.total)
        return split

    def _route_with_debt(self, ledger: LedgerState, minted_amount: int) -> RewardSplit:
        redeemed, remaining = redeem_debt(ledger, minted_amount, self.config)

        # Coupon LP incentive is paid out of the remainder, never beyond it
        pool_reward = add(
            mul_percent(remaining, self.config.pool_reward_percent),
            mul_percent(redeemed, self.config.coupon_lp_incentive_percent),
        )
        pool_reward = min(pool_reward, remaining)

        return RewardSplit(
            to_redeemable=redeemed,
            to_incentive_pool=pool_reward,
            to_bonded=sub(remaining, pool_reward),
        )

    def _route_without_debt(self, amount: int) -> RewardSplit:
        pool_reward = mul_percent(amount, self.config.pool_reward_percent)
        return RewardSplit(
            to_redeemable=0,
            to_incentive_pool=pool_reward,
            to_bonded=sub(amount, pool_reward),
        )
