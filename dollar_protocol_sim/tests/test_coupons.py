#!/usr/bin/env python3
"""
Coupon Market Test Suite

Coupon purchase against outstanding debt, funding through expansion, and
1:1 redemption from the redemption pool.
"""

import sys
import os
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from dollar_protocol_sim.core import coupons
from dollar_protocol_sim.core.errors import CouponError, InconsistentLedger, InsufficientBalance, StateStoreError
from dollar_protocol_sim.core.ledger import LedgerState
from dollar_protocol_sim.core.oracle import SettableOracle
from dollar_protocol_sim.core.regulator import Regulator
from dollar_protocol_sim.core.token import DollarToken
from dollar_protocol_sim.engine.config import RegulatorConfig
from dollar_protocol_sim.storage.ledger_store import JsonLedgerStore, MemoryLedgerStore


class TestCouponFunctions:
    """Ledger-level coupon mechanics"""

    def setup_method(self):
        self.config = RegulatorConfig()
        self.ledger = LedgerState(total_bonded=1_000_000, total_debt=10_000, current_epoch=4)

    def test_purchase_moves_debt_into_coupons(self):
        issued = coupons.purchase_coupons(self.ledger, "alice", 4_000)

        assert issued == 4_000
        assert self.ledger.total_debt == 6_000
        assert self.ledger.total_coupons_issued == 4_000
        assert self.ledger.balance_of_coupons("alice", 4) == 4_000
        assert self.ledger.unfunded_coupons() == 4_000

    def test_purchases_accumulate_in_batch(self):
        coupons.purchase_coupons(self.ledger, "alice", 1_000)
        coupons.purchase_coupons(self.ledger, "alice", 2_000)
        assert self.ledger.coupon_balances_of("alice") == {4: 3_000}

    @pytest.mark.parametrize("amount", [0, -5, 10_001])
    def test_purchase_rejected(self, amount):
        with pytest.raises(CouponError):
            coupons.purchase_coupons(self.ledger, "alice", amount)

    def test_redeem_debt_capped_by_unfunded_coupons(self):
        coupons.purchase_coupons(self.ledger, "alice", 1_000)
        redeemed, remaining = coupons.redeem_debt(self.ledger, 10_000, self.config)

        assert redeemed == 1_000
        assert remaining == 9_000
        assert self.ledger.total_redeemable == 1_000
        assert self.ledger.total_debt == 8_000

    def test_redeem_debt_without_coupons(self):
        redeemed, remaining = coupons.redeem_debt(self.ledger, 10_000, self.config)

        assert (redeemed, remaining) == (0, 10_000)
        assert self.ledger.total_debt == 10_000, "Debt is only paid down through coupons"

    def test_redeem_coupons(self):
        coupons.purchase_coupons(self.ledger, "alice", 5_000)
        self.ledger.total_redeemable = 3_000

        assert coupons.redeem_coupons(self.ledger, "alice", 4, 3_000) == 3_000
        assert self.ledger.balance_of_coupons("alice", 4) == 2_000
        assert self.ledger.total_redeemable == 0
        assert self.ledger.total_coupons_redeemed == 3_000
        assert self.ledger.outstanding_coupons() == 2_000

    def test_redeem_whole_batch_clears_key(self):
        coupons.purchase_coupons(self.ledger, "alice", 2_000)
        self.ledger.total_redeemable = 2_000
        coupons.redeem_coupons(self.ledger, "alice", 4, 2_000)
        assert ("alice", 4) not in self.ledger.coupon_balances

    def test_redeem_beyond_balance_rejected(self):
        coupons.purchase_coupons(self.ledger, "alice", 2_000)
        self.ledger.total_redeemable = 2_000
        with pytest.raises(CouponError):
            coupons.redeem_coupons(self.ledger, "alice", 4, 2_001)
        with pytest.raises(CouponError):
            coupons.redeem_coupons(self.ledger, "bob", 4, 1)

    def test_redeem_beyond_redeemable_rejected(self):
        coupons.purchase_coupons(self.ledger, "alice", 2_000)
        self.ledger.total_redeemable = 500
        with pytest.raises(CouponError):
            coupons.redeem_coupons(self.ledger, "alice", 4, 1_000)


    def test_account_must_be_a_name(self):
        with pytest.raises(CouponError):
            coupons.purchase_coupons(self.ledger, 7, 500)
        with pytest.raises(CouponError):
            coupons.redeem_coupons(self.ledger, None, 4, 1)
        assert self.ledger.total_debt == 10_000


class TestCouponAccessors:

    def setup_method(self):
        self.ledger = LedgerState(total_coupons_issued=700, coupon_balances={("alice", 2): 700})

    def test_unknown_keys_read_zero(self):
        assert self.ledger.balance_of_coupons("alice", 3) == 0
        assert self.ledger.balance_of_coupons("nobody", 2) == 0
        assert self.ledger.coupon_balances_of("nobody") == {}

    def test_malformed_keys_read_zero(self):
        assert self.ledger.balance_of_coupons(["alice"], 2) == 0
        assert self.ledger.balance_of_coupons("alice", {"epoch": 2}) == 0


class TestRegulatorCouponMarket:
    """Coupon lifecycle through the regulator: buy in contraction, fund in expansion, redeem"""

    def setup_method(self):
        self.config = RegulatorConfig()
        self.oracle = SettableOracle()
        self.token = DollarToken()
        self.store = MemoryLedgerStore()
        self.regulator = Regulator(
            oracle=self.oracle, token=self.token, store=self.store, config=self.config,
            ledger=LedgerState(total_bonded=1_000_000, current_epoch=1),
        )
        self.token.mint_to(self.config.bonded_reserve_account, 1_000_000)
        self.token.mint_to("alice", 20_000)

        self.oracle.set(99, 100)
        self.regulator.step()  # debt 10_000

    def test_purchase_burns_dollars(self):
        issued = self.regulator.purchase_coupons("alice", 10_000)

        assert issued == 10_000
        assert self.token.balance_of("alice") == 10_000
        assert self.token.total_supply == 1_010_000
        assert self.regulator.total_debt == 0
        assert self.regulator.balance_of_coupons("alice", 1) == 10_000
        assert self.regulator.total_coupons_issued == 10_000

    def test_purchase_over_debt_rejected_atomically(self):
        before = self.regulator.ledger
        with pytest.raises(CouponError):
            self.regulator.purchase_coupons("alice", 10_001)

        assert self.regulator.ledger == before
        assert self.token.balance_of("alice") == 20_000

    def test_purchase_without_funds_rejected_atomically(self):
        before = self.regulator.ledger
        with pytest.raises(InsufficientBalance):
            self.regulator.purchase_coupons("bob", 5_000)

        assert self.regulator.ledger == before
        assert self.regulator.balance_of_coupons("bob", 1) == 0

    def test_full_lifecycle(self):
        self.regulator.purchase_coupons("alice", 10_000)

        self.regulator.advance_epoch()
        self.oracle.set(101, 100)
        outcome = self.regulator.step()

        assert outcome.split.to_redeemable == 8_000
        assert outcome.split.to_incentive_pool == 2_000
        assert self.regulator.total_redeemable == 8_000
        assert self.token.balance_of(self.config.redemption_pool_account) == 8_000

        redeemed = self.regulator.redeem_coupons("alice", 1, 8_000)

        assert redeemed == 8_000
        assert self.token.balance_of("alice") == 18_000
        assert self.token.balance_of(self.config.redemption_pool_account) == 0
        assert self.regulator.total_redeemable == 0
        assert self.regulator.balance_of_coupons("alice", 1) == 2_000
        assert self.regulator.ledger.outstanding_coupons() == 2_000

    def test_redeem_unfunded_rejected(self):
        self.regulator.purchase_coupons("alice", 10_000)
        saves = self.store.save_count

        with pytest.raises(CouponError):
            self.regulator.redeem_coupons("alice", 1, 1_000)

        assert self.store.save_count == saves
        assert self.token.balance_of("alice") == 10_000

    def test_regulator_checks_invariants_on_coupon_commit(self):
        broken = self.regulator.ledger
        broken.total_redeemable = 50_000  # more than any purchase below can issue
        regulator = Regulator(oracle=self.oracle, token=self.token, ledger=broken)

        with pytest.raises(InconsistentLedger):
            regulator.purchase_coupons("alice", 1_000)


class TestCouponCommitFailure:
    """A purchase whose ledger cannot be persisted gives the burned Dollars back"""

    def test_unserializable_ledger_reverses_burn(self, tmp_path):
        ledger = LedgerState(
            total_bonded=1_000_000, total_debt=10_000, total_coupons_issued=100,
            coupon_balances={(7, 0): 100}, current_epoch=1,
        )
        token = DollarToken()
        token.mint_to("alice", 1_000)
        regulator = Regulator(
            oracle=SettableOracle(), token=token,
            store=JsonLedgerStore(tmp_path / "ledger.json"), ledger=ledger,
        )

        with pytest.raises(StateStoreError):
            regulator.purchase_coupons("alice", 500)

        assert token.balance_of("alice") == 1_000
        assert token.total_supply == 1_000
        assert regulator.total_debt == 10_000
        assert regulator.balance_of_coupons("alice", 1) == 0
        assert not (tmp_path / "ledger.json").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
