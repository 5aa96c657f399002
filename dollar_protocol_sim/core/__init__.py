"""Core Dollar protocol components"""

from .errors import (
    RegulationError, InvalidOracleReading, ArithmeticFault, ArithmeticOverflow,
    ArithmeticUnderflow, InconsistentLedger, DuplicateEpochStep, CouponError,
    InsufficientBalance, StateStoreError
)
from .ledger import LedgerState
from .oracle import PriceReading, Oracle, SettableOracle, ScriptedOracle
from .events import SupplyIncrease, SupplyDecrease, SupplyNeutral
from .token import DollarToken
from .rewards import RewardRouter, RewardSplit
from .regulator import Regulator, StepOutcome, Classification, regulate

__all__ = [
    "RegulationError", "InvalidOracleReading", "ArithmeticFault", "ArithmeticOverflow",
    "ArithmeticUnderflow", "InconsistentLedger", "DuplicateEpochStep", "CouponError",
    "InsufficientBalance", "StateStoreError",
    "LedgerState", "PriceReading", "Oracle", "SettableOracle", "ScriptedOracle",
    "SupplyIncrease", "SupplyDecrease", "SupplyNeutral",
    "DollarToken", "RewardRouter", "RewardSplit",
    "Regulator", "StepOutcome", "Classification", "regulate"
]
