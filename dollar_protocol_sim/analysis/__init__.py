"""Regulation metrics, charts and results storage"""

from .metrics import RegulationMetricsCalculator
from .results_manager import ResultsManager, RunMetadata

__all__ = ["RegulationMetricsCalculator", "ResultsManager", "RunMetadata"]
