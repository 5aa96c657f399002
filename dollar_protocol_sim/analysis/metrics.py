#!/usr/bin/env python3
"""
Regulation Metrics

Summary statistics over an epoch history: how often each policy path fired,
how much supply and debt the regulator created, and how close the price
stayed to the peg.
"""

from typing import Dict, List

import numpy as np
import pandas as pd


CLASSIFICATIONS = ("expansion", "contraction", "neutral", "invalid")


class RegulationMetricsCalculator:
    """Peg regulation metrics calculator"""

    def __init__(self, metrics_history: List[Dict]):
        self.history = self.to_dataframe(metrics_history)

    @staticmethod
    def to_dataframe(metrics_history: List[Dict]) -> pd.DataFrame:
        df = pd.DataFrame(metrics_history)
        if not df.empty:
            df = df.set_index("epoch", drop=False)
        return df

    def classification_counts(self) -> Dict[str, int]:
        if self.history.empty:
            return {name: 0 for name in CLASSIFICATIONS}
        counts = self.history["classification"].value_counts()
        return {name: int(counts.get(name, 0)) for name in CLASSIFICATIONS}

    def calculate_supply_metrics(self) -> Dict:
        """Minting and routing totals"""
        df = self.history
        if df.empty:
            return {}

        total_minted = int(df["minted"].sum())
        expansions = df[df["classification"] == "expansion"]
        return {
            "total_minted": total_minted,
            "total_to_redeemable": int(df["to_redeemable"].sum()),
            "total_to_incentive_pool": int(df["to_incentive_pool"].sum()),
            "total_to_bonded": int(df["to_bonded"].sum()),
            "mean_expansion_mint": float(expansions["minted"].mean()) if not expansions.empty else 0.0,
            "net_supply_growth": self._growth(df["net_supply"]),
            "final_net_supply": int(df["net_supply"].iloc[-1]),
        }

    def calculate_debt_metrics(self) -> Dict:
        """Debt issuance and coupon lifecycle"""
        df = self.history
        if df.empty:
            return {}

        debt_ratio = df["total_debt"] / df["net_supply"].replace(0, np.nan)
        return {
            "total_debt_issued": int(df["new_debt"].sum()),
            "peak_debt": int(df["total_debt"].max()),
            "final_debt": int(df["total_debt"].iloc[-1]),
            "peak_debt_ratio": float(debt_ratio.max()) if debt_ratio.notna().any() else 0.0,
            "total_coupons_purchased": int(df["coupons_purchased"].sum()),
            "total_coupons_redeemed": int(df["coupons_redeemed"].sum()),
            "final_outstanding_coupons": int(df["outstanding_coupons"].iloc[-1]),
        }

    def calculate_peg_metrics(self) -> Dict:
        """Distance from the peg across valid readings"""
        df = self.history
        if df.empty:
            return {}

        prices = df["price"].dropna().astype(float)
        deviation = (prices - 1.0).abs()
        return {
            "mean_abs_deviation": float(deviation.mean()) if not deviation.empty else 0.0,
            "max_abs_deviation": float(deviation.max()) if not deviation.empty else 0.0,
            "epochs_above_peg": int((prices > 1.0).sum()),
            "epochs_below_peg": int((prices < 1.0).sum()),
            "cap_hits": int(df["cap_applied"].sum()),
        }

    def generate_summary(self) -> Dict:
        return {
            "epochs": len(self.history),
            "classification_counts": self.classification_counts(),
            "supply": self.calculate_supply_metrics(),
            "debt": self.calculate_debt_metrics(),
            "peg": self.calculate_peg_metrics(),
        }

    def flat_key_metrics(self) -> Dict:
        """Single-level dict of headline numbers for reports"""
        summary = self.generate_summary()
        flat = {"epochs": summary["epochs"]}
        for section in ("supply", "debt", "peg"):
            flat.update(summary[section])
        for name, count in summary["classification_counts"].items():
            flat[f"{name}_epochs"] = count
        return flat

    @staticmethod
    def _growth(series: pd.Series) -> float:
        first = float(series.iloc[0])
        if first <= 0:
            return 0.0
        return float(series.iloc[-1]) / first - 1.0

    @staticmethod
    def aggregate_monte_carlo(run_summaries: List[Dict]) -> Dict:
        """Distribution of key metrics across Monte Carlo runs"""
        if not run_summaries:
            return {"num_runs": 0}

        df = pd.DataFrame(run_summaries)
        numeric = df.select_dtypes(include=[np.number])

        aggregated = {"num_runs": len(df)}
        for column in numeric.columns:
            values = numeric[column].astype(float)
            aggregated[column] = {
                "mean": float(values.mean()),
                "std": float(values.std(ddof=0)),
                "p5": float(np.percentile(values, 5)),
                "p95": float(np.percentile(values, 95)),
            }
        return aggregated
