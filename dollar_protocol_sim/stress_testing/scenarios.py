#!/usr/bin/env python3
"""
Peg Stress Test Scenario Definitions

Price paths that push the regulator through adversarial and edge-case oracle
inputs: extreme spikes, sustained depegs, flash crashes, oscillation around
the peg and oracle outages.
"""

from typing import Callable, Dict, List, Optional

import numpy as np

from ..core.oracle import ScriptedOracle
from ..engine.config import RegulatorConfig
from ..simulation.config import SimulationConfig
from ..simulation.engine import EpochSimulationEngine


PricePath = Callable[[np.random.Generator, int], np.ndarray]


class PegStressScenario:
    """A named price path generator plus optional config setup"""

    def __init__(
        self,
        name: str,
        description: str,
        price_path: PricePath,
        duration: int = 100,
        setup_func: Optional[Callable[[SimulationConfig], None]] = None,
    ):
        self.name = name
        self.description = description
        self.price_path = price_path
        self.duration = duration
        self.setup_func = setup_func
        self.results = None

    def generate_prices(self, seed: int, duration: Optional[int] = None) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return self.price_path(rng, duration or self.duration)

    def run(
        self,
        config: SimulationConfig,
        regulator_config: Optional[RegulatorConfig] = None,
        verbose: bool = True,
    ) -> dict:
        """Generate the price path and regulate one epoch per price"""
        if verbose:
            print(f"Scenario {self.name}: {self.description}")

        if self.setup_func:
            self.setup_func(config)

        prices = self.generate_prices(config.seed, config.num_epochs or self.duration)
        engine = EpochSimulationEngine(
            config,
            ScriptedOracle.from_prices(prices),
            regulator_config=regulator_config,
        )

        results = engine.run_simulation(len(prices))
        results["scenario_name"] = self.name
        results["price_path"] = prices
        self.results = results
        return results


# Price path generators

def constant_path(price: float) -> PricePath:
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        return np.full(n, price)
    return path


def spike_path(peak: float, start: int = 10, length: int = 10) -> PricePath:
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        prices = np.ones(n)
        prices[start:start + length] = peak
        return prices
    return path


def flash_crash_path(bottom: float = 0.5, overshoot: float = 1.2, crash_at: int = 10) -> PricePath:
    """Crash to bottom, recover linearly through the peg to an overshoot, then settle"""
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        prices = np.ones(n)
        if n <= crash_at:
            return prices
        recovery = max(1, (n - crash_at) // 2)
        prices[crash_at:crash_at + recovery] = np.linspace(bottom, overshoot, recovery)
        return prices
    return path


def regime_path(regimes: List[tuple]) -> PricePath:
    """Piecewise constant prices: [(price, epochs), ...], last regime fills the rest"""
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        prices = np.full(n, regimes[-1][0], dtype=float)
        start = 0
        for price, length in regimes[:-1]:
            prices[start:start + length] = price
            start += length
        return prices
    return path


def oscillating_path(amplitude: float = 0.08, period: int = 12) -> PricePath:
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        epochs = np.arange(n)
        return 1.0 + amplitude * np.sin(2 * np.pi * epochs / period)
    return path


def mean_reverting_path(volatility: float = 0.03, reversion: float = 0.2) -> PricePath:
    """Ornstein-Uhlenbeck walk around the peg, floored above zero"""
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        prices = np.empty(n)
        price = 1.0
        for i in range(n):
            price += reversion * (1.0 - price) + volatility * rng.standard_normal()
            price = max(0.01, price)
            prices[i] = price
        return prices
    return path


def outage_path(base: PricePath, outage_rate: float = 0.15) -> PricePath:
    """Drop random readings to NaN, which the oracle reports as invalid"""
    def path(rng: np.random.Generator, n: int) -> np.ndarray:
        prices = base(rng, n).astype(float)
        prices[rng.random(n) < outage_rate] = np.nan
        return prices
    return path


def _with_initial_debt(debt: int) -> Callable[[SimulationConfig], None]:
    def setup(config: SimulationConfig):
        config.initial_debt = debt
    return setup


class PegStressTestSuite:
    """Named peg scenarios and lookup by name"""

    def __init__(self):
        self.scenarios = self._create_scenarios()

    def _create_scenarios(self) -> List[PegStressScenario]:
        """Catalogue of peg paths, from calm to adversarial"""

        return [
            PegStressScenario(
                "Peg_Hold",
                "Price sits exactly on the peg; every epoch should be neutral",
                constant_path(1.0),
                duration=50
            ),

            PegStressScenario(
                "Mild_Expansion",
                "Price 1% above peg every epoch, below the supply change cap",
                constant_path(1.01),
                duration=100
            ),

            PegStressScenario(
                "Extreme_Spike",
                "Price jumps to 5x peg for ten epochs to test the expansion cap",
                spike_path(5.0),
                duration=60
            ),

            PegStressScenario(
                "Sustained_Depeg",
                "Price stuck at 0.90 while coupon buyers absorb debt",
                constant_path(0.90),
                duration=100
            ),

            PegStressScenario(
                "Flash_Crash_Recovery",
                "Crash to 0.50, recover through the peg to 1.20 and settle",
                flash_crash_path(),
                duration=120
            ),

            PegStressScenario(
                "Oscillating_Peg",
                "Price oscillates 8% around the peg, alternating debt and redemption",
                oscillating_path(),
                duration=120
            ),

            PegStressScenario(
                "Oracle_Outage",
                "Mean-reverting price with 15% of readings invalid",
                outage_path(mean_reverting_path()),
                duration=150
            ),

            PegStressScenario(
                "Random_Walk",
                "Mean-reverting random walk around the peg",
                mean_reverting_path(),
                duration=200
            ),

            PegStressScenario(
                "Debt_Then_Expansion",
                "Starts with 10% debt, trades at 0.95 for 20 epochs, then expands at 1.05",
                regime_path([(0.95, 20), (1.05, None)]),
                duration=80,
                setup_func=_with_initial_debt(100_000)
            ),
        ]

    def get_scenario(self, scenario_name: str) -> PegStressScenario:
        scenario = next((s for s in self.scenarios if s.name == scenario_name), None)
        if not scenario:
            raise ValueError(f"Scenario '{scenario_name}' not found")
        return scenario

    def run_scenario(
        self,
        scenario_name: str,
        config: Optional[SimulationConfig] = None,
        regulator_config: Optional[RegulatorConfig] = None,
        verbose: bool = True,
    ) -> dict:
        """Run one scenario by name; defaults to its own duration"""
        scenario = self.get_scenario(scenario_name)
        if config is None:
            config = SimulationConfig()
            config.num_epochs = scenario.duration
        return scenario.run(config, regulator_config, verbose=verbose)

    def get_scenario_names(self) -> List[str]:
        return [s.name for s in self.scenarios]

    def describe_scenarios(self) -> List[Dict[str, str]]:
        return [
            {"name": s.name, "description": s.description, "duration": s.duration}
            for s in self.scenarios
        ]
