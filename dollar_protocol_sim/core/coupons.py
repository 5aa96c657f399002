#!/usr/bin/env python3
"""
Debt and Coupon Mechanics

Contraction epochs record debt. Holders buy coupons against that debt, and
later expansions fund the coupon book by moving new supply into the
redeemable pool, where coupons are paid out 1:1 in Dollars.

All functions mutate the ledger they are handed; the regulator only ever hands
them a working copy.
"""

import logging
from typing import Tuple

from .errors import CouponError
from .fixed_point import add, checked, mul_percent, sub
from .ledger import LedgerState
from ..engine.config import RegulatorConfig


logger = logging.getLogger(__name__)


def _check_account(account):
    if not isinstance(account, str):
        raise CouponError(f"coupon accounts are names, got {type(account).__name__} {account!r}")


def redeem_debt(ledger: LedgerState, minted_amount: int, config: RegulatorConfig) -> Tuple[int, int]:
    """
    Fund unfunded coupons out of newly minted supply.

    At most coupon_refresh_ratio_percent of the mint is used, and never more
    than the coupons still waiting for funding. Debt is paid down by the same
    amount, never below zero.

    Returns:
        (redeemed, remaining) where remaining is left for the reward router
    """
    checked(minted_amount)

    refresh_budget = mul_percent(minted_amount, config.coupon_refresh_ratio_percent)
    coupon_share = min(refresh_budget, ledger.unfunded_coupons())

    if coupon_share > 0:
        ledger.total_debt = sub(ledger.total_debt, min(ledger.total_debt, coupon_share))
        ledger.total_redeemable = add(ledger.total_redeemable, coupon_share)

    return coupon_share, sub(minted_amount, coupon_share)


def purchase_coupons(ledger: LedgerState, account: str, amount: int) -> int:
    """
    Exchange outstanding debt for coupons in the current epoch's batch.

    The caller burns `amount` Dollars from the buyer. Returns the coupons issued.
    """
    _check_account(account)
    if amount <= 0:
        raise CouponError("coupon purchase amount must be positive")
    if amount > ledger.total_debt:
        raise CouponError(
            f"cannot purchase {amount} coupons, only {ledger.total_debt} debt outstanding"
        )

    key = (account, ledger.current_epoch)
    ledger.total_debt = sub(ledger.total_debt, amount)
    ledger.total_coupons_issued = add(ledger.total_coupons_issued, amount)
    ledger.coupon_balances[key] = add(ledger.coupon_balances.get(key, 0), amount)

    logger.debug("Issued %d coupons to %s in epoch %d", amount, account, ledger.current_epoch)
    return amount


def redeem_coupons(ledger: LedgerState, account: str, epoch: int, amount: int) -> int:
    """
    Redeem coupons from one batch against the funded redeemable pool.

    The caller pays out `amount` Dollars from the redemption pool.
    """
    _check_account(account)
    if amount <= 0:
        raise CouponError("coupon redemption amount must be positive")

    key = (account, epoch)
    balance = ledger.coupon_balances.get(key, 0)
    if amount > balance:
        raise CouponError(f"{account} holds {balance} coupons from epoch {epoch}, cannot redeem {amount}")
    if amount > ledger.total_redeemable:
        raise CouponError(
            f"only {ledger.total_redeemable} redeemable, cannot redeem {amount}"
        )

    remaining = sub(balance, amount)
    if remaining:
        ledger.coupon_balances[key] = remaining
    else:
        del ledger.coupon_balances[key]
    ledger.total_redeemable = sub(ledger.total_redeemable, amount)
    ledger.total_coupons_redeemed = add(ledger.total_coupons_redeemed, amount)

    return amount
