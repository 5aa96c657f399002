#!/usr/bin/env python3
"""
Dollar Token

Minimal balance book standing in for the external token contract. The
regulator only needs mint_to and balance_of; the coupon market also burns and
transfers.
"""

from typing import Dict

from .errors import InsufficientBalance
from .fixed_point import add, checked, sub


class DollarToken:
    """In-memory Dollar balances"""

    def __init__(self, symbol: str = "DOLLAR"):
        self.symbol = symbol
        self.balances: Dict[str, int] = {}
        self.total_supply = 0

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def mint_to(self, account: str, amount: int):
        """Create new tokens in an account"""
        checked(amount)
        if amount == 0:
            return
        self.total_supply = add(self.total_supply, amount)
        self.balances[account] = add(self.balance_of(account), amount)

    def burn_from(self, account: str, amount: int):
        """Destroy tokens held by an account"""
        checked(amount)
        balance = self.balance_of(account)
        if amount > balance:
            raise InsufficientBalance(
                f"{account} holds {balance} {self.symbol}, cannot burn {amount}"
            )
        self.balances[account] = sub(balance, amount)
        self.total_supply = sub(self.total_supply, amount)

    def transfer(self, sender: str, recipient: str, amount: int):
        checked(amount)
        balance = self.balance_of(sender)
        if amount > balance:
            raise InsufficientBalance(
                f"{sender} holds {balance} {self.symbol}, cannot transfer {amount}"
            )
        self.balances[sender] = sub(balance, amount)
        self.balances[recipient] = add(self.balance_of(recipient), amount)

    def get_state_summary(self) -> dict:
        return {
            "symbol": self.symbol,
            "total_supply": self.total_supply,
            "holders": len([b for b in self.balances.values() if b > 0]),
        }
