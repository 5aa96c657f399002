#!/usr/bin/env python3
"""
Epoch Regulator

One step per epoch: read the oracle, classify the epoch as expansion,
contraction, neutral or invalid, and commit the resulting ledger in a single
transaction.

regulate() is the pure core. It takes a committed LedgerState and a
PriceReading and returns a new state plus the event, leaving its input
untouched. Regulator wraps it with the I/O boundary: oracle capture, token
mints, persistence and event delivery.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from . import coupons
from .errors import DuplicateEpochStep
from .events import RegulationEvent, SupplyDecrease, SupplyIncrease, SupplyNeutral
from .fixed_point import ONE, format_fixed, mul_bips, mul_fixed, add, sub
from .ledger import LedgerState
from .oracle import Oracle, PriceReading
from .rewards import RewardRouter, RewardSplit
from .token import DollarToken
from ..engine.config import RegulatorConfig
from ..storage.ledger_store import LedgerStore, MemoryLedgerStore


logger = logging.getLogger(__name__)


class Classification(Enum):
    """Mutually exclusive outcome of a regulated epoch"""
    EXPANSION = "expansion"
    CONTRACTION = "contraction"
    NEUTRAL = "neutral"
    INVALID = "invalid"


@dataclass(frozen=True)
class StepOutcome:
    """Result of regulating one epoch"""
    ledger: LedgerState
    event: Optional[RegulationEvent]
    classification: Optional[Classification]
    split: RewardSplit = RewardSplit()
    minted: int = 0
    price: Optional[int] = None
    cap_applied: bool = False
    replayed: bool = False


def regulate(ledger: LedgerState, reading: PriceReading, config: RegulatorConfig) -> StepOutcome:
    """
    Regulate the ledger's current epoch against one price reading.

    Raises ArithmeticFault or InconsistentLedger on fatal conditions; in that
    case nothing has been committed because only a working copy was touched.
    """
    epoch = ledger.current_epoch

    if _already_regulated(ledger):
        return StepOutcome(ledger=ledger, event=None, classification=None, replayed=True)

    working = ledger.copy()
    working.last_regulated_epoch = epoch

    if not reading.is_usable:
        working.check_invariants()
        return StepOutcome(
            ledger=working,
            event=SupplyNeutral(epoch),
            classification=Classification.INVALID,
        )

    price = reading.fixed_point()

    if price > ONE:
        outcome = _expand(working, price, config)
    elif price < ONE:
        outcome = _contract(working, price, config)
    else:
        outcome = _neutral(working, price)

    outcome.ledger.check_invariants()
    return outcome


def _already_regulated(ledger: LedgerState) -> bool:
    return ledger.last_regulated_epoch is not None and ledger.current_epoch <= ledger.last_regulated_epoch


def _neutral(working: LedgerState, price: int) -> StepOutcome:
    return StepOutcome(
        ledger=working,
        event=SupplyNeutral(working.current_epoch),
        classification=Classification.NEUTRAL,
        price=price,
    )


def _expand(working: LedgerState, price: int, config: RegulatorConfig) -> StepOutcome:
    net_supply = working.net_supply()
    limit_bips = config.expansion_limit_bips(working.unfunded_coupons() > 0)

    raw_delta = mul_fixed(net_supply, sub(price, ONE))
    cap = mul_bips(net_supply, limit_bips)
    delta = min(raw_delta, cap)

    if delta == 0:
        return _neutral(working, price)

    split = RewardRouter(config).route(working, delta)

    event = SupplyIncrease(
        epoch=working.current_epoch,
        price=price,
        new_redeemable=split.to_redeemable,
        less_debt=working.total_debt,
        new_bonded=sub(delta, split.to_redeemable),
    )
    return StepOutcome(
        ledger=working,
        event=event,
        classification=Classification.EXPANSION,
        split=split,
        minted=delta,
        price=price,
        cap_applied=raw_delta > cap,
    )


def _contract(working: LedgerState, price: int, config: RegulatorConfig) -> StepOutcome:
    base = working.net_supply_ex_debt()

    raw_delta = mul_fixed(base, sub(ONE, price))
    cap = mul_bips(base, config.supply_change_limit_bips)
    delta = min(raw_delta, cap)

    working.total_debt = add(working.total_debt, delta)

    return StepOutcome(
        ledger=working,
        event=SupplyDecrease(epoch=working.current_epoch, price=price, new_debt=delta),
        classification=Classification.CONTRACTION,
        price=price,
        cap_applied=raw_delta > cap,
    )


class Regulator:
    """Owns the committed ledger and applies one transaction at a time"""

    def __init__(
        self,
        oracle: Oracle,
        token: Optional[DollarToken] = None,
        store: Optional[LedgerStore] = None,
        config: Optional[RegulatorConfig] = None,
        ledger: Optional[LedgerState] = None,
    ):
        self.oracle = oracle
        self.token = token or DollarToken()
        self.store = store or MemoryLedgerStore()
        self.config = config or RegulatorConfig()
        self._ledger = ledger.copy() if ledger is not None else self.store.load()
        self._lock = threading.Lock()

        self.events: List[RegulationEvent] = []
        self._listeners: List[Callable[[RegulationEvent], None]] = []

    # Transactions

    def step(self, strict: bool = False) -> StepOutcome:
        """
        Regulate the current epoch.

        A repeated step for an already regulated epoch is a no-op returning a
        replayed outcome, or raises DuplicateEpochStep when strict is set. The
        oracle is neither read nor advanced in that case, and it is only
        advanced once a step has been committed.
        """
        with self._lock:
            if _already_regulated(self._ledger):
                logger.info("Epoch %d already regulated, skipping", self._ledger.current_epoch)
                if strict:
                    raise DuplicateEpochStep(self._ledger.current_epoch, self._ledger.last_regulated_epoch)
                return StepOutcome(ledger=self._ledger.copy(), event=None, classification=None, replayed=True)

            reading = self.oracle.capture()
            outcome = regulate(self._ledger, reading, self.config)

            minted = []
            try:
                for account, amount in self._split_legs(outcome.split):
                    self.token.mint_to(account, amount)
                    minted.append((account, amount))
                self.store.save(outcome.ledger)
            except Exception:
                for account, amount in reversed(minted):
                    self.token.burn_from(account, amount)
                raise
            self._ledger = outcome.ledger
            self.oracle.advance()

        self._log_outcome(reading, outcome)
        self._deliver(outcome.event)
        return outcome

    def advance_epoch(self) -> int:
        """Move to the next epoch (the external trigger's job)"""
        with self._lock:
            working = self._ledger.copy()
            working.current_epoch += 1
            self.store.save(working)
            self._ledger = working
            return working.current_epoch

    def purchase_coupons(self, account: str, amount: int) -> int:
        """Burn Dollars from account and issue coupons in the current epoch"""
        with self._lock:
            working = self._ledger.copy()
            issued = coupons.purchase_coupons(working, account, amount)
            working.check_invariants()

            self.token.burn_from(account, amount)
            try:
                self.store.save(working)
            except Exception:
                self.token.mint_to(account, amount)
                raise
            self._ledger = working

        logger.info("Coupon purchase: %s bought %d in epoch %d", account, issued, working.current_epoch)
        return issued

    def redeem_coupons(self, account: str, epoch: int, amount: int) -> int:
        """Pay out funded coupons 1:1 from the redemption pool"""
        pool = self.config.redemption_pool_account
        with self._lock:
            working = self._ledger.copy()
            redeemed = coupons.redeem_coupons(working, account, epoch, amount)
            working.check_invariants()

            self.token.transfer(pool, account, redeemed)
            try:
                self.store.save(working)
            except Exception:
                self.token.transfer(account, pool, redeemed)
                raise
            self._ledger = working

        logger.info("Coupon redemption: %s redeemed %d from epoch %d", account, redeemed, epoch)
        return redeemed

    # Events

    def subscribe(self, listener: Callable[[RegulationEvent], None]):
        self._listeners.append(listener)

    def _deliver(self, event: RegulationEvent):
        """Hand a committed event to every listener; a failing listener cannot undo the commit"""
        self.events.append(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %s for epoch %d", listener, event.name, event.epoch)

    # Token realization

    def _split_legs(self, split: RewardSplit):
        return [
            (self.config.bonded_reserve_account, split.to_bonded),
            (self.config.incentive_pool_account, split.to_incentive_pool),
            (self.config.redemption_pool_account, split.to_redeemable),
        ]

    def _log_outcome(self, reading: PriceReading, outcome: StepOutcome):
        if outcome.classification == Classification.EXPANSION:
            logger.info(
                "Epoch %d expansion at %s: minted %d (redeemable %d, pool %d, bonded %d)%s",
                outcome.event.epoch, format_fixed(outcome.price), outcome.minted,
                outcome.split.to_redeemable, outcome.split.to_incentive_pool, outcome.split.to_bonded,
                " [capped]" if outcome.cap_applied else "",
            )
        elif outcome.classification == Classification.CONTRACTION:
            logger.info(
                "Epoch %d contraction at %s: new debt %d%s",
                outcome.event.epoch, format_fixed(outcome.price), outcome.event.new_debt,
                " [capped]" if outcome.cap_applied else "",
            )
        elif outcome.classification == Classification.INVALID:
            logger.warning("Epoch %d neutral: unusable oracle reading %s", outcome.event.epoch, reading)
        else:
            logger.info("Epoch %d neutral", outcome.event.epoch)

    # Read-only accessors

    @property
    def ledger(self) -> LedgerState:
        """Copy of the committed ledger"""
        return self._ledger.copy()

    @property
    def epoch(self) -> int:
        return self._ledger.current_epoch

    @property
    def last_regulated_epoch(self) -> Optional[int]:
        return self._ledger.last_regulated_epoch

    @property
    def total_supply(self) -> int:
        return self._ledger.total_supply

    @property
    def total_bonded(self) -> int:
        return self._ledger.total_bonded

    @property
    def total_staged(self) -> int:
        return self._ledger.total_staged

    @property
    def total_debt(self) -> int:
        return self._ledger.total_debt

    @property
    def total_coupons_issued(self) -> int:
        return self._ledger.total_coupons_issued

    @property
    def total_redeemable(self) -> int:
        return self._ledger.total_redeemable

    def balance_of_coupons(self, account, epoch) -> int:
        return self._ledger.balance_of_coupons(account, epoch)
