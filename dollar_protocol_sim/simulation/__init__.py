"""Epoch simulation engine and configuration"""

from .engine import EpochSimulationEngine
from .config import SimulationConfig

__all__ = ["EpochSimulationEngine", "SimulationConfig"]
