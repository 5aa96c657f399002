"""Stress testing framework"""

from .runner import StressTestRunner, QuickStressTest
from .scenarios import PegStressTestSuite, PegStressScenario

__all__ = ["StressTestRunner", "QuickStressTest", "PegStressTestSuite", "PegStressScenario"]
