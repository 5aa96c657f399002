#!/usr/bin/env python3
"""
Regulator configuration schema.

Pydantic model for the monetary policy parameters. Ratios are integer
percentages and caps integer basis points so every derived amount stays exact.
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator


class RegulatorConfig(BaseModel):
    """Monetary policy parameters"""

    supply_change_limit_bips: int = Field(
        300, ge=0, le=10_000, description="Max supply change per epoch, bips of the net-supply base"
    )
    coupon_supply_change_limit_bips: Optional[int] = Field(
        None, ge=0, le=10_000,
        description="Expansion cap while unfunded coupons are outstanding; None uses supply_change_limit_bips"
    )
    coupon_refresh_ratio_percent: int = Field(
        80, ge=0, le=100, description="Share of new supply that may fund coupon redemption"
    )
    coupon_lp_incentive_percent: int = Field(
        20, ge=0, le=100, description="Incentive pool payout as a share of the redeemed amount"
    )
    pool_reward_percent: int = Field(
        40, ge=0, le=100, description="Incentive pool share of supply routed outside coupons"
    )

    bonded_reserve_account: str = Field("dao", min_length=1)
    incentive_pool_account: str = Field("pool", min_length=1)
    redemption_pool_account: str = Field("redemption", min_length=1)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("redemption_pool_account")
    @classmethod
    def validate_distinct_accounts(cls, v, info):
        """Routing accounts must be distinct so balances stay attributable"""
        others = (info.data.get("bonded_reserve_account"), info.data.get("incentive_pool_account"))
        if v in others:
            raise ValueError("routing accounts must be distinct")
        return v

    @field_validator("incentive_pool_account")
    @classmethod
    def validate_pool_account(cls, v, info):
        if v == info.data.get("bonded_reserve_account"):
            raise ValueError("routing accounts must be distinct")
        return v

    def expansion_limit_bips(self, coupons_outstanding: bool) -> int:
        """Cap applied to an expansion given the coupon book"""
        if coupons_outstanding and self.coupon_supply_change_limit_bips is not None:
            return self.coupon_supply_change_limit_bips
        return self.supply_change_limit_bips

    @classmethod
    def deployed(cls) -> "RegulatorConfig":
        """Parameters of the deployed regulator, including the 6% coupon-era cap"""
        return cls(coupon_supply_change_limit_bips=600)

    def get_summary(self) -> dict:
        return self.model_dump()


def load_config(path: Union[str, Path, None]) -> RegulatorConfig:
    """Load a RegulatorConfig from a JSON override file (missing keys use defaults)"""
    if path is None:
        return RegulatorConfig()

    with open(path, 'r') as f:
        overrides = json.load(f)

    if overrides.pop("preset", None) == "deployed":
        overrides = {**RegulatorConfig.deployed().model_dump(), **overrides}
    return RegulatorConfig(**overrides)
