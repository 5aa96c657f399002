#!/usr/bin/env python3
"""
Dollar Protocol Regulation - Main Entry Point

Runs peg stress scenarios against the regulator, and lets an operator step a
persisted ledger one epoch at a time.
"""

import argparse
import json
import logging
import sys
from typing import Dict

from .core.errors import RegulationError
from .core.fixed_point import format_fixed
from .core.oracle import SettableOracle, parse_price
from .core.regulator import Regulator
from .engine.config import load_config
from .storage.ledger_store import JsonLedgerStore
from .analysis.results_manager import to_jsonable
from .simulation.config import SimulationConfig
from .stress_testing.runner import StressTestRunner, QuickStressTest
from .stress_testing.scenarios import PegStressTestSuite


def main(argv=None) -> int:
    """Parse arguments and dispatch to a stress run or an operator step"""

    parser = argparse.ArgumentParser(
        description="Dollar Protocol Regulation Stress Testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dollar-sim --list-scenarios                      # List available scenarios
  dollar-sim --quick                               # Quick smoke batch
  dollar-sim --scenario Sustained_Depeg            # Run one scenario (auto-saves results)
  dollar-sim --scenario Random_Walk --monte-carlo 200
  dollar-sim --state-file ledger.json --advance --step --price 101/100
        """
    )

    # Test type arguments
    parser.add_argument('--quick', action='store_true',
                        help='Short smoke batch over the core peg scenarios')

    parser.add_argument('--scenario', type=str,
                        help='Run one named peg scenario')

    parser.add_argument('--full-suite', action='store_true',
                        help='Run every stress test scenario once')

    parser.add_argument('--list-scenarios', action='store_true',
                        help='Print the scenario catalogue and exit')

    # Operator arguments
    parser.add_argument('--state-file', type=str, metavar='PATH',
                        help='Persisted ledger used by --step')

    parser.add_argument('--advance', action='store_true',
                        help='Advance the persisted ledger to the next epoch before stepping')

    parser.add_argument('--step', action='store_true',
                        help='Regulate the current epoch of the persisted ledger')

    parser.add_argument('--price', type=str, metavar='N/D',
                        help='Oracle price for --step, e.g. 101/100')

    parser.add_argument('--invalid', action='store_true',
                        help='Flag the --price reading as invalid')

    # Configuration arguments
    parser.add_argument('--config', type=str, metavar='PATH',
                        help='JSON file overriding regulator parameters')

    parser.add_argument('--monte-carlo', type=int, default=1,
                        help='Number of Monte Carlo runs for --scenario (default: 1)')

    parser.add_argument('--epochs', type=int,
                        help='Number of epochs per run (default: scenario duration)')

    parser.add_argument('--seed', type=int,
                        help='Random seed for reproducibility')

    parser.add_argument('--no-charts', action='store_true',
                        help='Skip chart generation')

    parser.add_argument('--results-dir', type=str, default='results',
                        help='Directory for saved runs (default: results)')

    parser.add_argument('--output', type=str,
                        help='Also write the results as JSON to this path')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    if not any([args.quick, args.scenario, args.full_suite, args.list_scenarios, args.step, args.advance]):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        regulator_config = load_config(args.config)

        if args.list_scenarios:
            list_scenarios()
            return 0

        elif args.step or args.advance:
            return run_operator_step(args, regulator_config)

        elif args.quick:
            print("Quick peg smoke batch")
            print("=" * 50)
            QuickStressTest(regulator_config).run_quick_test(args.verbose)
            return 0

        elif args.scenario:
            print(f"Scenario: {args.scenario}")
            print("=" * 60)
            return run_single_scenario(args.scenario, args, regulator_config)

        elif args.full_suite:
            runner = create_runner(args, regulator_config)
            results = runner.run_full_stress_test_suite()
            if args.output:
                export_results(results, args.output)
            return 0

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 1
    except Exception as e:
        print(f"Error: {str(e)}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    return 0


def create_simulation_config(args):
    """Simulation configuration from command-line overrides, or None for scenario defaults"""
    if args.epochs is None and args.seed is None:
        return None

    config = SimulationConfig()
    if args.epochs is not None:
        config.num_epochs = args.epochs
    else:
        config.num_epochs = None
    if args.seed is not None:
        config.seed = args.seed
    return config


def create_runner(args, regulator_config) -> StressTestRunner:
    return StressTestRunner(
        config=create_simulation_config(args),
        regulator_config=regulator_config,
        generate_charts=not args.no_charts,
        results_dir=args.results_dir,
    )


def list_scenarios():
    """Print each scenario with its duration and description"""

    test_suite = PegStressTestSuite()

    print("Peg scenarios:")
    print("-" * 40)

    for i, scenario in enumerate(test_suite.describe_scenarios(), 1):
        print(f"{i:2d}. {scenario['name']} ({scenario['duration']} epochs)")
        print(f"    {scenario['description']}")
        print()


def run_single_scenario(scenario_name: str, args, regulator_config) -> int:
    """One scenario, or a Monte Carlo batch of it when --monte-carlo > 1"""

    runner = create_runner(args, regulator_config)

    try:
        if args.monte_carlo > 1:
            print(f"Monte Carlo batch of {args.monte_carlo} seeds")
            results = runner.run_monte_carlo_stress_test(scenario_name, args.monte_carlo)
        else:
            results = runner.run_scenario(scenario_name)

        display_scenario_results(scenario_name, results, args.verbose)

        if args.output:
            export_results({scenario_name: results}, args.output)

        return 0

    except ValueError as e:
        print(f"Error: {str(e)}")
        print("Known scenarios: " + ", ".join(PegStressTestSuite().get_scenario_names()))
        return 1


def run_operator_step(args, regulator_config) -> int:
    """Advance and/or regulate one epoch of a ledger persisted on disk"""

    if not args.state_file:
        print("Error: --step and --advance require --state-file")
        return 1
    if args.step and not args.price:
        print("Error: --step requires --price N/D")
        return 1

    store = JsonLedgerStore(args.state_file)
    oracle = SettableOracle()
    regulator = Regulator(oracle=oracle, store=store, config=regulator_config)

    if args.advance:
        epoch = regulator.advance_epoch()
        print(f"Advanced to epoch {epoch}")

    if not args.step:
        return 0

    try:
        reading = parse_price(args.price, valid=not args.invalid)
    except ValueError:
        print(f"Error: cannot parse price '{args.price}', expected N/D")
        return 1
    oracle.set(reading.numerator, reading.denominator, reading.valid)

    try:
        outcome = regulator.step()
    except RegulationError as e:
        print(f"Step rejected, ledger unchanged: {e}")
        return 1

    if outcome.replayed:
        print(f"Epoch {regulator.epoch} was already regulated; nothing to do")
        return 0

    print(f"Epoch {regulator.epoch}: {outcome.classification.value}")
    print(f"Event: {outcome.event}")
    if outcome.price is not None:
        print(f"Price: {format_fixed(outcome.price, 6)}")
    display_ledger(regulator.ledger.totals())
    return 0


def display_ledger(totals: Dict[str, int]):
    print("\nLedger:")
    for name, value in totals.items():
        print(f"  {name.replace('_', ' ').title():<24} {value:>20,}")


def display_scenario_results(scenario_name: str, results: Dict, verbose: bool):
    """Headline regulation numbers for a finished run"""

    print(f"\n{scenario_name}")
    print("-" * len(scenario_name))

    if "analysis" in results:
        analysis = results["analysis"]
        counts = analysis["classification_counts"]
        print(f"Epochs: {analysis['epochs']}")
        print(f"  Expansion: {counts['expansion']}  Contraction: {counts['contraction']}  "
              f"Neutral: {counts['neutral']}  Invalid: {counts['invalid']}")

        supply = analysis.get("supply", {})
        debt = analysis.get("debt", {})
        peg = analysis.get("peg", {})
        print(f"\nTotal minted: {supply.get('total_minted', 0):,}")
        print(f"Net supply growth: {supply.get('net_supply_growth', 0):.2%}")
        print(f"Peak debt: {debt.get('peak_debt', 0):,}")
        print(f"Final debt: {debt.get('final_debt', 0):,}")
        print(f"Cap hits: {peg.get('cap_hits', 0)}")

        if verbose:
            print(f"\nDetailed Metrics:")
            for section in ("supply", "debt", "peg"):
                for metric, value in analysis.get(section, {}).items():
                    print(f"  {metric.replace('_', ' ').title()}: {value}")

    if "monte_carlo" in results:
        mc = results["monte_carlo"]
        print(f"Monte Carlo runs: {mc.get('num_runs', 0)} (failed: {results.get('failed_runs', 0)})")
        for metric in ("total_minted", "peak_debt", "final_debt", "mean_abs_deviation"):
            stats = mc.get(metric)
            if isinstance(stats, dict):
                print(f"  {metric.replace('_', ' ').title()}: mean {stats['mean']:,.4f}  "
                      f"p5 {stats['p5']:,.4f}  p95 {stats['p95']:,.4f}")


def export_results(results: Dict, output_file: str):
    """Write results as JSON, converting numpy and pandas values"""

    with open(output_file, 'w') as f:
        json.dump(to_jsonable(results), f, indent=2)

    print(f"Results exported to: {output_file}")


if __name__ == "__main__":
    sys.exit(main())
