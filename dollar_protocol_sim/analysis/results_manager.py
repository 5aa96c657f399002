#!/usr/bin/env python3
"""
Run Archive

Every saved stress run gets its own numbered directory under
<results_dir>/<scenario>/ holding results.json, metadata.json, the epoch
history as history.csv, a markdown summary and a charts/ folder.
"""

import json
import math
import re
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


RUN_DIR_PATTERN = re.compile(r"^run_(\d+)_")

PERCENT_METRICS = ("net_supply_growth", "peak_debt_ratio", "mean_abs_deviation", "max_abs_deviation")


def to_jsonable(value: Any) -> Any:
    """Recursively convert numpy, pandas and dataclass-like values for json.dump"""
    if isinstance(value, dict):
        return {str(getattr(k, "value", k)): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, (str, int, bool)) or value is None:
        return value
    if hasattr(value, "tolist"):
        return to_jsonable(value.tolist())
    if hasattr(value, "to_dict"):
        return to_jsonable(value.to_dict())
    return str(value)


@dataclass
class RunMetadata:
    """What was run, when, and with which regulator parameters"""
    run_id: str
    scenario_name: str
    timestamp: str
    execution_time: float
    num_runs: int = 1
    regulator_parameters: Dict[str, Any] = field(default_factory=dict)
    status: str = "completed"


class ResultsManager:
    """Numbered run directories per scenario"""

    def __init__(self, base_results_dir: str = "results"):
        self.base_results_dir = Path(base_results_dir)
        self.base_results_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def create_run_directory(self, scenario_name: str) -> Path:
        """Allocate run_<NNN>_<timestamp> under the scenario's directory"""
        with self._lock:
            scenario_dir = self.base_results_dir / scenario_name
            scenario_dir.mkdir(exist_ok=True)

            taken = [self._run_number(p) for p in scenario_dir.iterdir() if p.is_dir()]
            number = max([n for n in taken if n is not None], default=0) + 1
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")

            run_dir = scenario_dir / f"run_{number:03d}_{stamp}"
            (run_dir / "charts").mkdir(parents=True)
            return run_dir

    @staticmethod
    def _run_number(path: Path) -> Optional[int]:
        match = RUN_DIR_PATTERN.match(path.name)
        return int(match.group(1)) if match else None

    def save_results(self, run_dir: Path, results: Dict[str, Any], metadata: RunMetadata) -> Path:
        """Write results.json and metadata.json; history.csv when an epoch history is present"""
        results_path = run_dir / "results.json"
        results_path.write_text(json.dumps(to_jsonable(results), indent=2))
        (run_dir / "metadata.json").write_text(json.dumps(to_jsonable(asdict(metadata)), indent=2))

        history = self._find_history(results)
        if history:
            pd.DataFrame(history).to_csv(run_dir / "history.csv", index=False)

        return results_path

    @staticmethod
    def _find_history(results: Dict[str, Any]) -> Optional[List[Dict]]:
        if results.get("metrics_history"):
            return results["metrics_history"]
        for key in ("scenario_results", "sample_scenario_results"):
            nested = results.get(key)
            if isinstance(nested, dict) and nested.get("metrics_history"):
                return nested["metrics_history"]
        return None

    def save_summary_report(
        self,
        run_dir: Path,
        metadata: RunMetadata,
        key_metrics: Dict[str, Any],
        charts: Optional[List[str]] = None,
    ) -> Path:
        report_path = run_dir / "summary.md"
        report_path.write_text(self._render_summary(metadata, key_metrics, charts or []))
        return report_path

    @staticmethod
    def _render_summary(metadata: RunMetadata, key_metrics: Dict[str, Any], charts: List[str]) -> str:
        lines = [
            f"# {metadata.scenario_name.replace('_', ' ')}",
            "",
            f"Run `{metadata.run_id}` at {metadata.timestamp}, "
            f"{metadata.num_runs} run(s) in {metadata.execution_time:.2f}s.",
            "",
        ]

        if key_metrics:
            lines += ["| Metric | Value |", "|---|---|"]
            for name, value in key_metrics.items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    shown = str(value)
                elif name in PERCENT_METRICS:
                    shown = f"{value:.2%}"
                elif isinstance(value, int):
                    shown = f"{value:,}"
                else:
                    shown = f"{value:,.2f}"
                lines.append(f"| {name} | {shown} |")
            lines.append("")

        if metadata.regulator_parameters:
            lines.append("Regulator parameters: " + ", ".join(
                f"{k}={v}" for k, v in metadata.regulator_parameters.items()))
            lines.append("")

        for chart in charts:
            lines.append(f"![{chart}](charts/{chart})")

        return "\n".join(lines) + "\n"

    def list_scenario_runs(self, scenario_name: str) -> List[RunMetadata]:
        """Metadata of every readable run of a scenario, oldest first"""
        scenario_dir = self.base_results_dir / scenario_name
        if not scenario_dir.is_dir():
            return []

        run_dirs = sorted(
            (p for p in scenario_dir.iterdir() if p.is_dir() and self._run_number(p) is not None),
            key=self._run_number,
        )
        runs = []
        for run_dir in run_dirs:
            metadata = self.load_metadata(run_dir)
            if metadata is not None:
                runs.append(metadata)
        return runs

    def load_results(self, run_dir: Path) -> Optional[Dict[str, Any]]:
        return self._read_json(run_dir / "results.json")

    def load_metadata(self, run_dir: Path) -> Optional[RunMetadata]:
        data = self._read_json(run_dir / "metadata.json")
        if data is None:
            return None
        try:
            return RunMetadata(**data)
        except TypeError:
            return None

    @staticmethod
    def _read_json(path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text())
        except json.JSONDecodeError:
            return None
