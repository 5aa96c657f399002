#!/usr/bin/env python3
"""
Epoch Simulation Engine

Drives the regulator epoch by epoch against an oracle, with a simple coupon
buyer that absorbs debt during contractions and redeems once coupons are
funded. Records one metrics row per epoch.
"""

from typing import Dict, List, Optional

from ..core.fixed_point import ONE
from ..core.ledger import LedgerState
from ..core.oracle import Oracle
from ..core.regulator import Classification, Regulator, StepOutcome
from ..core.token import DollarToken
from ..engine.config import RegulatorConfig
from ..storage.ledger_store import LedgerStore, MemoryLedgerStore
from .config import SimulationConfig


class EpochSimulationEngine:
    """Runs the regulator over a sequence of epochs"""

    def __init__(
        self,
        config: SimulationConfig,
        oracle: Oracle,
        regulator_config: Optional[RegulatorConfig] = None,
        store: Optional[LedgerStore] = None,
    ):
        self.config = config
        self.regulator_config = regulator_config or RegulatorConfig()
        self.token = DollarToken()
        self.regulator = Regulator(
            oracle=oracle,
            token=self.token,
            store=store or MemoryLedgerStore(),
            config=self.regulator_config,
            ledger=self._initial_ledger(),
        )
        self._seed_balances()

        self.metrics_history: List[Dict] = []
        self.events: List[Dict] = []

    def _initial_ledger(self) -> LedgerState:
        return LedgerState(
            total_supply=self.config.initial_supply,
            total_bonded=self.config.initial_bonded,
            total_staged=self.config.initial_staged,
            total_debt=self.config.initial_debt,
        )

    def _seed_balances(self):
        """Back the seeded ledger with actual token balances"""
        self.token.mint_to(self.regulator_config.bonded_reserve_account,
                           self.config.initial_bonded + self.config.initial_staged)
        self.token.mint_to("market", self.config.initial_supply)
        self.token.mint_to(self.config.coupon_buyer_account, self.config.coupon_buyer_balance)

    def run_simulation(self, num_epochs: Optional[int] = None) -> Dict:
        """Run simulation for the given number of epochs"""
        num_epochs = num_epochs if num_epochs is not None else self.config.num_epochs

        for i in range(num_epochs):
            self.regulator.advance_epoch()
            outcome = self.regulator.step()

            purchased = self._buy_coupons(outcome)
            redeemed = self._redeem_coupons()

            self._record_metrics(outcome, purchased, redeemed)

            if self.config.progress_frequency and (i + 1) % self.config.progress_frequency == 0:
                print(f"Simulation epoch {i + 1}/{num_epochs}")

        return self._generate_results()

    def _buy_coupons(self, outcome: StepOutcome) -> int:
        if outcome.classification != Classification.CONTRACTION:
            return 0

        buyer = self.config.coupon_buyer_account
        target = int(self.regulator.total_debt * self.config.coupon_purchase_rate)
        amount = min(target, self.token.balance_of(buyer))
        if amount <= 0:
            return 0
        return self.regulator.purchase_coupons(buyer, amount)

    def _redeem_coupons(self) -> int:
        if not self.config.redeem_coupons:
            return 0

        buyer = self.config.coupon_buyer_account
        redeemed = 0
        for epoch, balance in sorted(self.regulator.ledger.coupon_balances_of(buyer).items()):
            available = self.regulator.total_redeemable
            amount = min(balance, available)
            if amount <= 0:
                break
            redeemed += self.regulator.redeem_coupons(buyer, epoch, amount)
        return redeemed

    def _record_metrics(self, outcome: StepOutcome, purchased: int, redeemed: int):
        ledger = self.regulator.ledger
        event = outcome.event

        self.metrics_history.append({
            "epoch": ledger.current_epoch,
            "price": outcome.price / ONE if outcome.price is not None else None,
            "classification": outcome.classification.value if outcome.classification else "replayed",
            "minted": outcome.minted,
            "to_redeemable": outcome.split.to_redeemable,
            "to_incentive_pool": outcome.split.to_incentive_pool,
            "to_bonded": outcome.split.to_bonded,
            "new_debt": getattr(event, "new_debt", 0),
            "cap_applied": outcome.cap_applied,
            "coupons_purchased": purchased,
            "coupons_redeemed": redeemed,
            "total_supply": ledger.total_supply,
            "total_bonded": ledger.total_bonded,
            "total_staged": ledger.total_staged,
            "total_debt": ledger.total_debt,
            "total_redeemable": ledger.total_redeemable,
            "outstanding_coupons": ledger.outstanding_coupons(),
            "net_supply": ledger.net_supply(),
            "token_supply": self.token.total_supply,
            "incentive_pool_balance": self.token.balance_of(self.regulator_config.incentive_pool_account),
        })

        if event is not None:
            self.events.append(event.to_dict())

    def _generate_results(self) -> Dict:
        ledger = self.regulator.ledger
        return {
            "metrics_history": self.metrics_history,
            "events": self.events,
            "final_ledger": ledger.to_dict(),
            "token_state": self.token.get_state_summary(),
            "simulation_config": self.config.get_summary(),
            "regulator_config": self.regulator_config.get_summary(),
        }
