#!/usr/bin/env python3
"""
Simulation parameters

Simple attribute class for the epoch simulation knobs. Monetary policy
parameters live in engine.config.RegulatorConfig.
"""


class SimulationConfig:
    """Simple simulation configuration"""

    def __init__(self):
        # Run length
        self.num_epochs = 200
        self.progress_frequency = 50  # Print progress every 50 epochs

        # Initial ledger (whole Dollar units)
        self.initial_bonded = 1_000_000
        self.initial_staged = 0
        self.initial_supply = 0
        self.initial_debt = 0

        # Market participants
        self.coupon_buyer_account = "coupon_buyer"
        self.coupon_buyer_balance = 250_000
        self.coupon_purchase_rate = 0.25  # Share of outstanding debt bought as coupons per contraction epoch
        self.redeem_coupons = True

        # Reproducibility
        self.seed = 42

    def get_summary(self) -> dict:
        return dict(self.__dict__)
