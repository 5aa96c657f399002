"""
Dollar Protocol Regulation Simulation

Algorithmic elastic-supply regulator for a peg-targeting token: one supply
decision per epoch, debt and coupons in contraction, rewards to bonders and
the incentive pool in expansion.
"""

__version__ = "1.0.0"
__author__ = "Dollar Protocol Team"

# Core components (import first: storage depends on core)
from .core.errors import (
    RegulationError, InvalidOracleReading, ArithmeticFault, ArithmeticOverflow,
    ArithmeticUnderflow, InconsistentLedger, DuplicateEpochStep, CouponError,
    InsufficientBalance, StateStoreError
)
from .core.ledger import LedgerState
from .core.oracle import PriceReading, Oracle, SettableOracle, ScriptedOracle
from .core.events import SupplyIncrease, SupplyDecrease, SupplyNeutral
from .core.token import DollarToken
from .core.regulator import Regulator, StepOutcome, Classification, regulate

# Configuration and persistence
from .engine.config import RegulatorConfig, load_config
from .storage.ledger_store import LedgerStore, MemoryLedgerStore, JsonLedgerStore

# Simulation
from .simulation.config import SimulationConfig
from .simulation.engine import EpochSimulationEngine

# Stress Testing
from .stress_testing.runner import StressTestRunner, QuickStressTest
from .stress_testing.scenarios import PegStressTestSuite

# Analysis
from .analysis.metrics import RegulationMetricsCalculator

__all__ = [
    # Errors
    "RegulationError", "InvalidOracleReading", "ArithmeticFault", "ArithmeticOverflow",
    "ArithmeticUnderflow", "InconsistentLedger", "DuplicateEpochStep", "CouponError",
    "InsufficientBalance", "StateStoreError",

    # Core
    "LedgerState", "PriceReading", "Oracle", "SettableOracle", "ScriptedOracle",
    "SupplyIncrease", "SupplyDecrease", "SupplyNeutral", "DollarToken",
    "Regulator", "StepOutcome", "Classification", "regulate",

    # Configuration and persistence
    "RegulatorConfig", "load_config",
    "LedgerStore", "MemoryLedgerStore", "JsonLedgerStore",

    # Simulation
    "SimulationConfig", "EpochSimulationEngine",

    # Stress Testing
    "StressTestRunner", "QuickStressTest", "PegStressTestSuite",

    # Analysis
    "RegulationMetricsCalculator"
]
