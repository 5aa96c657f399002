#!/usr/bin/env python3
"""
Simulation, Stress Scenario and Analysis Test Suite

Runs short scenarios end to end and checks that the epoch history, the
metrics and the saved results agree with the regulator's rules.
"""

import sys
import os
import json
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from dollar_protocol_sim.analysis.metrics import RegulationMetricsCalculator
from dollar_protocol_sim.analysis.results_manager import ResultsManager
from dollar_protocol_sim.core.oracle import ScriptedOracle
from dollar_protocol_sim.engine.config import RegulatorConfig
from dollar_protocol_sim.main import main
from dollar_protocol_sim.simulation.config import SimulationConfig
from dollar_protocol_sim.simulation.engine import EpochSimulationEngine
from dollar_protocol_sim.stress_testing.runner import QuickStressTest, StressTestRunner
from dollar_protocol_sim.stress_testing.scenarios import PegStressTestSuite


def short_config(num_epochs=40) -> SimulationConfig:
    config = SimulationConfig()
    config.num_epochs = num_epochs
    config.progress_frequency = 0
    return config


class TestEpochSimulationEngine:

    def setup_method(self):
        self.config = short_config()
        self.regulator_config = RegulatorConfig()

    def _run(self, prices):
        engine = EpochSimulationEngine(self.config, ScriptedOracle.from_prices(prices), self.regulator_config)
        return engine, engine.run_simulation(len(prices))

    def test_one_row_and_event_per_epoch(self):
        engine, results = self._run([1.0, 1.02, 0.97, float("nan")])
        history = results["metrics_history"]

        assert [row["epoch"] for row in history] == [1, 2, 3, 4]
        assert [row["classification"] for row in history] == ["neutral", "expansion", "contraction", "invalid"]
        assert [e["event"] for e in results["events"]] == [
            "SupplyNeutral", "SupplyIncrease", "SupplyDecrease", "SupplyNeutral"
        ]

    def test_token_supply_reconciles_with_history(self):
        engine, results = self._run([0.9] * 10 + [1.05] * 20)
        history = results["metrics_history"]

        seeded = self.config.initial_bonded + self.config.initial_staged + \
            self.config.initial_supply + self.config.coupon_buyer_balance
        minted = sum(row["minted"] for row in history)
        burned = sum(row["coupons_purchased"] for row in history)

        assert minted > 0 and burned > 0
        assert engine.token.total_supply == seeded + minted - burned
        for row in history:
            assert row["to_redeemable"] + row["to_incentive_pool"] + row["to_bonded"] == row["minted"]
            assert row["total_debt"] >= 0
            assert row["total_redeemable"] <= row["outstanding_coupons"]

    def test_coupon_buyer_redeems_after_recovery(self):
        engine, results = self._run([0.9] * 10 + [1.05] * 30)
        history = results["metrics_history"]

        assert sum(row["coupons_purchased"] for row in history) > 0
        assert sum(row["coupons_redeemed"] for row in history) > 0
        assert results["final_ledger"]["total_coupons_redeemed"] > 0


class TestPegStressScenarios:

    def setup_method(self):
        self.suite = PegStressTestSuite()

    def _run(self, name, num_epochs=None):
        config = short_config(num_epochs or self.suite.get_scenario(name).duration)
        results = self.suite.run_scenario(name, config, verbose=False)
        return RegulationMetricsCalculator(results["metrics_history"])

    def test_scenario_catalogue(self):
        names = self.suite.get_scenario_names()
        assert "Peg_Hold" in names and "Oracle_Outage" in names and "Debt_Then_Expansion" in names
        assert len(names) == len(set(names))
        with pytest.raises(ValueError):
            self.suite.get_scenario("Nope")

    def test_peg_hold_is_all_neutral(self):
        counts = self._run("Peg_Hold").classification_counts()
        assert counts == {"expansion": 0, "contraction": 0, "neutral": 50, "invalid": 0}

    def test_extreme_spike_hits_cap(self):
        calculator = self._run("Extreme_Spike")
        assert calculator.calculate_peg_metrics()["cap_hits"] == 10

    def test_sustained_depeg_accrues_debt(self):
        debt = self._run("Sustained_Depeg", 30).calculate_debt_metrics()
        assert debt["peak_debt"] > 0
        assert debt["total_debt_issued"] > 0
        assert debt["total_coupons_purchased"] > 0

    def test_oracle_outage_marks_invalid_epochs(self):
        counts = self._run("Oracle_Outage").classification_counts()
        assert counts["invalid"] > 0
        assert sum(counts.values()) == 150

    def test_debt_then_expansion_funds_coupons(self):
        supply = self._run("Debt_Then_Expansion").calculate_supply_metrics()
        assert supply["total_to_redeemable"] > 0

    def test_seeded_paths_are_reproducible(self):
        scenario = self.suite.get_scenario("Random_Walk")
        assert list(scenario.generate_prices(7, 20)) == list(scenario.generate_prices(7, 20))


class TestRegulationMetrics:

    def test_empty_history(self):
        calculator = RegulationMetricsCalculator([])
        assert calculator.generate_summary()["epochs"] == 0
        assert calculator.calculate_supply_metrics() == {}

    def test_monte_carlo_aggregation(self):
        aggregated = RegulationMetricsCalculator.aggregate_monte_carlo([
            {"total_minted": 10, "peak_debt": 0},
            {"total_minted": 30, "peak_debt": 4},
        ])
        assert aggregated["num_runs"] == 2
        assert aggregated["total_minted"]["mean"] == 20.0
        assert aggregated["peak_debt"]["std"] == 2.0


class TestStressTestRunner:

    def test_monte_carlo_batch(self):
        runner = StressTestRunner(auto_save=False, generate_charts=False)
        results = runner.run_monte_carlo_stress_test("Oscillating_Peg", 3)

        assert results["monte_carlo"]["num_runs"] == 3
        assert results["failed_runs"] == 0
        assert "sample_scenario_results" in results

    def test_saved_run_layout(self, tmp_path):
        runner = StressTestRunner(auto_save=True, generate_charts=False, results_dir=str(tmp_path))
        runner.run_scenario("Peg_Hold")

        runs = ResultsManager(str(tmp_path)).list_scenario_runs("Peg_Hold")
        assert len(runs) == 1
        assert runs[0].scenario_name == "Peg_Hold"
        run_dir = tmp_path / "Peg_Hold" / runs[0].run_id
        assert (run_dir / "results.json").exists()
        assert (run_dir / "history.csv").exists()
        assert (run_dir / "summary.md").exists()

        with open(run_dir / "results.json") as f:
            saved = json.load(f)
        assert saved["analysis"]["classification_counts"]["neutral"] == 50

    def test_quick_test(self):
        results = QuickStressTest(num_epochs=15).run_quick_test()
        assert set(results) == set(QuickStressTest.SCENARIOS)


class TestCommandLine:

    def test_no_arguments_prints_help(self):
        assert main([]) == 1

    def test_list_scenarios(self, capsys):
        assert main(["--list-scenarios"]) == 0
        assert "Sustained_Depeg" in capsys.readouterr().out

    def test_operator_step_against_state_file(self, tmp_path):
        state = tmp_path / "ledger.json"

        assert main(["--state-file", str(state), "--advance", "--step", "--price", "99/100"]) == 0
        with open(state) as f:
            ledger = json.load(f)["ledger"]
        assert ledger["current_epoch"] == 1
        assert ledger["last_regulated_epoch"] == 1

        # Same epoch again is a no-op
        assert main(["--state-file", str(state), "--step", "--price", "150/100"]) == 0

    def test_step_requires_price(self, tmp_path):
        assert main(["--state-file", str(tmp_path / "ledger.json"), "--step"]) == 1

    def test_unknown_scenario(self, tmp_path):
        assert main(["--scenario", "Nope", "--no-charts", "--results-dir", str(tmp_path)]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
