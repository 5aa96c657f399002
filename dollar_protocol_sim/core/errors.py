#!/usr/bin/env python3
"""
Regulation Error Taxonomy

Every failure the regulator can raise. Fatal errors reject the whole step and
leave the committed ledger untouched; InvalidOracleReading is recovered
locally as a neutral epoch.
"""


class RegulationError(Exception):
    """Base class for all regulator errors"""


class InvalidOracleReading(RegulationError):
    """Oracle reading flagged invalid or carrying a zero denominator"""


class ArithmeticFault(RegulationError):
    """A supply, debt or ratio computation left the uint256 range"""


class ArithmeticOverflow(ArithmeticFault):
    """Value exceeded MAX_UINT256"""


class ArithmeticUnderflow(ArithmeticFault):
    """Value went below zero"""


class InconsistentLedger(RegulationError):
    """Ledger invariant violated at commit time"""


class DuplicateEpochStep(RegulationError):
    """Step requested for an epoch that was already regulated"""

    def __init__(self, epoch: int, last_regulated_epoch: int):
        super().__init__(
            f"epoch {epoch} already regulated (last regulated epoch: {last_regulated_epoch})"
        )
        self.epoch = epoch
        self.last_regulated_epoch = last_regulated_epoch


class CouponError(RegulationError):
    """Coupon purchase or redemption rejected"""


class InsufficientBalance(RegulationError):
    """Token account cannot cover a burn or transfer"""


class StateStoreError(RegulationError):
    """Persisted ledger could not be read or written"""
