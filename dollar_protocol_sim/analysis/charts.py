#!/usr/bin/env python3
"""
Regulation Chart Generator

One 2x2 time-series chart per scenario: oracle price, supply composition,
debt and coupon book, and per-epoch minting.
"""

from pathlib import Path
from typing import Any, Dict, List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


class RegulationChartGenerator:
    """Generates the regulation dynamics chart for a scenario"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        """Matplotlib defaults shared by every regulation chart"""
        plt.style.use('default')
        sns.set_palette("husl")

        plt.rcParams.update({
            'figure.figsize': (14, 10),
            'font.size': 11,
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'legend.fontsize': 10,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10
        })

    def generate_scenario_charts(
        self,
        scenario_name: str,
        results: Dict[str, Any],
        charts_dir: Path
    ) -> List[Path]:
        """Write the chart for one scenario run and return its path"""

        metrics_history = results.get("metrics_history", [])
        if not metrics_history:
            print(f"No epoch history for {scenario_name}; skipping charts")
            return []

        charts_dir.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame(metrics_history)

        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(14, 10))
        fig.suptitle(f'{scenario_name.replace("_", " ")} - Regulation Dynamics',
                     fontsize=16, fontweight='bold')

        self._plot_price(ax1, df)
        self._plot_supply(ax2, df)
        self._plot_debt(ax3, df)
        self._plot_minting(ax4, df)

        plt.tight_layout()

        chart_path = charts_dir / f"{scenario_name.lower()}_regulation_dynamics.png"
        fig.savefig(chart_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"Chart written: {chart_path}")
        return [chart_path]

    def _plot_price(self, ax, df: pd.DataFrame):
        sns.lineplot(data=df, x="epoch", y="price", ax=ax, linewidth=2, color='#E74C3C', label='Oracle Price')
        ax.axhline(y=1.0, color='gray', linestyle='--', alpha=0.7, label='Peg')

        invalid = df[df["classification"] == "invalid"]
        if not invalid.empty:
            ax.scatter(invalid["epoch"], [1.0] * len(invalid), marker='x', color='black',
                       label='Invalid Reading', zorder=3)

        ax.set_title('Oracle Price vs Peg')
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Price')
        ax.legend()

    def _plot_supply(self, ax, df: pd.DataFrame):
        ax.plot(df["epoch"], df["total_bonded"].astype(float), linewidth=2, label='Bonded')
        ax.plot(df["epoch"], df["net_supply"].astype(float), linewidth=2, linestyle='--', label='Net Supply')
        ax.plot(df["epoch"], df["incentive_pool_balance"].astype(float), linewidth=2, label='Incentive Pool')
        ax.set_title('Supply Composition')
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Dollars')
        ax.legend()

    def _plot_debt(self, ax, df: pd.DataFrame):
        ax.plot(df["epoch"], df["total_debt"].astype(float), linewidth=2, color='#C0392B', label='Debt')
        ax.plot(df["epoch"], df["outstanding_coupons"].astype(float), linewidth=2, label='Outstanding Coupons')
        ax.plot(df["epoch"], df["total_redeemable"].astype(float), linewidth=2, label='Redeemable')
        ax.set_title('Debt and Coupon Book')
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Dollars')
        ax.legend()

    def _plot_minting(self, ax, df: pd.DataFrame):
        ax.bar(df["epoch"], df["to_bonded"].astype(float), label='To Bonded', color='#3498DB')
        ax.bar(df["epoch"], df["to_incentive_pool"].astype(float),
               bottom=df["to_bonded"].astype(float), label='To Incentive Pool', color='#27AE60')
        ax.bar(df["epoch"], df["to_redeemable"].astype(float),
               bottom=(df["to_bonded"] + df["to_incentive_pool"]).astype(float),
               label='To Redeemable', color='#F39C12')
        ax.bar(df["epoch"], -df["new_debt"].astype(float), label='New Debt', color='#C0392B', alpha=0.6)
        ax.axhline(y=0, color='black', linewidth=0.8)
        ax.set_title('Per-Epoch Supply Change')
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Dollars')
        ax.legend()
