#!/usr/bin/env python3
"""
Price Oracle Adapters

The regulator only needs a single capture() per epoch. Price discovery lives
outside this package; these adapters feed fixed or scripted readings.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .fixed_point import ONE, ratio


PRICE_DENOMINATOR = 10 ** 6


@dataclass(frozen=True)
class PriceReading:
    """Price of one Dollar relative to the 1.0 peg"""
    numerator: int
    denominator: int
    valid: bool = True

    @property
    def is_usable(self) -> bool:
        """False for flagged, zero-denominator or negative readings"""
        return (
            self.valid
            and self.denominator > 0
            and self.numerator >= 0
        )

    def fixed_point(self) -> int:
        """Price at 18-decimal scale"""
        return ratio(self.numerator, self.denominator)

    @property
    def is_peg(self) -> bool:
        return self.is_usable and self.fixed_point() == ONE

    @classmethod
    def from_float(cls, price: float, denominator: int = PRICE_DENOMINATOR) -> "PriceReading":
        """Build a reading from a simulated float price; NaN or inf marks an outage"""
        if price is None or not math.isfinite(price) or price < 0:
            return cls(numerator=0, denominator=denominator, valid=False)
        return cls(numerator=int(round(price * denominator)), denominator=denominator, valid=True)

    def __str__(self) -> str:
        flag = "" if self.valid else " (invalid)"
        return f"{self.numerator}/{self.denominator}{flag}"


class Oracle(ABC):
    """Consumed oracle interface"""

    @abstractmethod
    def capture(self) -> PriceReading:
        """Return the price reading for the current epoch without consuming it"""

    def advance(self):
        """Called once the captured reading has been committed"""


class SettableOracle(Oracle):
    """Oracle whose next reading is set by hand"""

    def __init__(self, numerator: int = 1, denominator: int = 1, valid: bool = True):
        self._reading = PriceReading(numerator, denominator, valid)

    def set(self, numerator: int, denominator: int, valid: bool = True):
        self._reading = PriceReading(numerator, denominator, valid)

    def capture(self) -> PriceReading:
        return self._reading


class ScriptedOracle(Oracle):
    """Replays a fixed sequence of readings, one per committed step"""

    def __init__(self, readings: Iterable[PriceReading], hold_last: bool = True):
        self.readings: List[PriceReading] = list(readings)
        self.hold_last = hold_last
        self.position = 0

    @classmethod
    def from_prices(cls, prices: Sequence[float], denominator: int = PRICE_DENOMINATOR) -> "ScriptedOracle":
        return cls(PriceReading.from_float(float(p), denominator) for p in prices)

    def capture(self) -> PriceReading:
        if not self.readings:
            return PriceReading(0, PRICE_DENOMINATOR, valid=False)

        if self.position >= len(self.readings):
            if not self.hold_last:
                # Ran past the script: report a stale reading
                return PriceReading(0, PRICE_DENOMINATOR, valid=False)
            return self.readings[-1]

        return self.readings[self.position]

    def advance(self):
        if self.position < len(self.readings):
            self.position += 1

    @property
    def remaining(self) -> int:
        return max(0, len(self.readings) - self.position)

    def peek(self) -> Optional[PriceReading]:
        if self.position < len(self.readings):
            return self.readings[self.position]
        return None


def parse_price(text: str, valid: bool = True) -> PriceReading:
    """Parse 'N/D' (or a bare integer N meaning N/1) into a reading"""
    text = text.strip()
    if "/" in text:
        numerator, denominator = text.split("/", 1)
        return PriceReading(int(numerator), int(denominator), valid)
    return PriceReading(int(text), 1, valid)
