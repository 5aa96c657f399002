#!/usr/bin/env python3
"""
Peg Stress Runner

Runs peg stress scenarios singly or as Monte Carlo batches with varied seeds,
with automatic results storage and charts.
"""

import time
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .scenarios import PegStressTestSuite
from ..analysis.metrics import RegulationMetricsCalculator
from ..analysis.results_manager import ResultsManager, RunMetadata
from ..engine.config import RegulatorConfig
from ..simulation.config import SimulationConfig


class StressTestRunner:
    """Runs peg scenarios once or over many seeds and archives each run"""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        regulator_config: Optional[RegulatorConfig] = None,
        auto_save: bool = True,
        generate_charts: bool = True,
        results_dir: str = "results",
    ):
        self.config = config
        self.regulator_config = regulator_config or RegulatorConfig()
        self.test_suite = PegStressTestSuite()
        self.results = {}

        self.auto_save = auto_save
        self.results_manager = ResultsManager(results_dir) if self.auto_save else None
        self.chart_generator = None
        if generate_charts:
            from ..analysis.charts import RegulationChartGenerator
            self.chart_generator = RegulationChartGenerator()

    def _scenario_config(self, scenario_name: str, seed: Optional[int] = None) -> SimulationConfig:
        scenario = self.test_suite.get_scenario(scenario_name)
        config = SimulationConfig()
        if self.config is not None:
            config.__dict__.update(self.config.__dict__)
        else:
            config.num_epochs = scenario.duration
        if seed is not None:
            config.seed = seed
        return config

    def run_scenario(self, scenario_name: str) -> Dict:
        """Run a single scenario and analyze it"""
        start_time = time.time()

        config = self._scenario_config(scenario_name)
        results = self.test_suite.run_scenario(scenario_name, config, self.regulator_config)
        analysis = RegulationMetricsCalculator(results["metrics_history"]).generate_summary()

        final_results = {
            "scenario_results": results,
            "analysis": analysis,
        }
        self.results[scenario_name] = final_results

        if self.auto_save:
            self._save_scenario_results(scenario_name, final_results, time.time() - start_time, 1)

        return final_results

    def run_monte_carlo_stress_test(self, scenario_name: str, num_runs: int = 100) -> Dict:
        """
        Re-run one scenario over independently seeded price paths

        Args:
            scenario_name: Scenario from the peg catalogue
            num_runs: Number of Monte Carlo runs, each with its own seed

        Returns:
            Metric distributions plus one sample run for charts
        """

        print(f"Monte Carlo: {scenario_name} x {num_runs} seeds")
        print("=" * 50)

        seed_source = np.random.default_rng(self._base_seed())
        seeds = seed_source.integers(0, 2 ** 31 - 1, size=num_runs)

        run_summaries: List[Dict] = []
        sample_run = None
        start_time = time.time()

        for run, seed in enumerate(seeds):
            try:
                config = self._scenario_config(scenario_name, seed=int(seed))
                config.progress_frequency = 0
                results = self.test_suite.run_scenario(
                    scenario_name, config, self.regulator_config, verbose=False
                )
                run_summaries.append(RegulationMetricsCalculator(results["metrics_history"]).flat_key_metrics())
                sample_run = results

                if (run + 1) % 10 == 0:
                    print(f"  {run + 1}/{num_runs} seeds done ({time.time() - start_time:.1f}s)")

            except Exception as e:
                print(f"  seed {int(seed)} failed: {e}")
                continue

        aggregated = RegulationMetricsCalculator.aggregate_monte_carlo(run_summaries)
        aggregated_results = {
            "scenario_name": scenario_name,
            "monte_carlo": aggregated,
            "failed_runs": num_runs - len(run_summaries),
        }
        if sample_run is not None:
            aggregated_results["sample_scenario_results"] = sample_run

        total_time = time.time() - start_time
        print(f"Monte Carlo batch finished in {total_time:.1f}s")

        self.results[scenario_name] = aggregated_results
        if self.auto_save:
            self._save_scenario_results(scenario_name, aggregated_results, total_time, num_runs)

        return aggregated_results

    def run_full_stress_test_suite(self) -> Dict:
        """Run every scenario once"""

        print("Running Full Peg Stress Test Suite")
        print("=" * 60)

        suite_results = {}
        scenario_names = self.test_suite.get_scenario_names()

        for i, scenario_name in enumerate(scenario_names):
            print(f"\n[{i + 1}/{len(scenario_names)}] {scenario_name}")

            try:
                suite_results[scenario_name] = self.run_scenario(scenario_name)
            except Exception as e:
                print(f"{scenario_name} failed: {e}")
                suite_results[scenario_name] = {"error": str(e)}

        print("\n" + "=" * 60)
        print(f"{len(suite_results)} scenarios run")
        print("=" * 60)

        return suite_results

    def _base_seed(self) -> int:
        return self.config.seed if self.config is not None else SimulationConfig().seed

    def _save_scenario_results(
        self,
        scenario_name: str,
        results: Dict,
        execution_time: float,
        num_runs: int
    ) -> Optional[Path]:
        """Archive one run: results, history, charts and summary.md"""
        if self.results_manager is None:
            return None

        run_dir = self.results_manager.create_run_directory(scenario_name)
        metadata = RunMetadata(
            run_id=run_dir.name,
            scenario_name=scenario_name,
            timestamp=time.strftime("%Y-%m-%d %H:%M:%S"),
            execution_time=execution_time,
            num_runs=num_runs,
            regulator_parameters=self.regulator_config.get_summary(),
        )
        self.results_manager.save_results(run_dir, results, metadata)

        sample = results.get("scenario_results") or results.get("sample_scenario_results") or {}
        history = sample.get("metrics_history") or []

        chart_names = []
        if self.chart_generator is not None and history:
            try:
                charts = self.chart_generator.generate_scenario_charts(scenario_name, sample, run_dir / "charts")
                chart_names = [chart.name for chart in charts]
            except Exception as e:
                print(f"Warning: chart generation failed for {scenario_name}: {e}")

        key_metrics = RegulationMetricsCalculator(history).flat_key_metrics() if history else {}
        self.results_manager.save_summary_report(run_dir, metadata, key_metrics, chart_names)

        print(f"\n📁 Results saved to: {run_dir}")
        return run_dir


class QuickStressTest:
    """Short smoke batch for development"""

    SCENARIOS = ("Peg_Hold", "Extreme_Spike", "Sustained_Depeg", "Oracle_Outage")

    def __init__(self, regulator_config: Optional[RegulatorConfig] = None, num_epochs: int = 30):
        self.regulator_config = regulator_config or RegulatorConfig()
        self.num_epochs = num_epochs
        self.suite = PegStressTestSuite()

    def run_quick_test(self, verbose: bool = False) -> Dict[str, Dict]:
        results = {}
        for name in self.SCENARIOS:
            config = SimulationConfig()
            config.num_epochs = self.num_epochs
            config.progress_frequency = 0
            run = self.suite.run_scenario(name, config, self.regulator_config, verbose=verbose)
            summary = RegulationMetricsCalculator(run["metrics_history"]).generate_summary()
            results[name] = summary
            counts = summary["classification_counts"]
            print(f"{name:<20} expansions={counts['expansion']:<4} contractions={counts['contraction']:<4} "
                  f"neutral={counts['neutral']:<4} invalid={counts['invalid']:<4} "
                  f"final_debt={summary['debt']['final_debt']:,}")
        return results
