"""
Bounded random-walk price simulator.

next = base + base * U(-3%, +3%), floored at 10. A symbol with no history
is seeded from U[800, 1400). Pure: the caller supplies the previous price
and owns persistence.
"""

from __future__ import annotations

import random
from decimal import Decimal, ROUND_DOWN
from typing import Optional

D = Decimal

SEED_LOW = D("800")
SEED_SPAN = D("600")
MAX_STEP = 0.03
PRICE_FLOOR = D("10")

_Q4 = D("0.0001")


class PriceSimulator:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        *,
        max_step: float = MAX_STEP,
        floor: Decimal = PRICE_FLOOR,
    ) -> None:
        self.rng = rng or random.Random()
        self.max_step = float(max_step)
        self.floor = D(floor)

    def seed_price(self) -> Decimal:
        # rounding down keeps the seed strictly below 1400
        raw = SEED_LOW + SEED_SPAN * D(repr(self.rng.random()))
        return raw.quantize(_Q4, rounding=ROUND_DOWN)

    def next_price(self, previous: Optional[Decimal]) -> Decimal:
        base = self.seed_price() if previous is None else D(previous).quantize(_Q4, rounding=ROUND_DOWN)
        step = D(repr(self.rng.uniform(-self.max_step, self.max_step)))
        # toward zero, so |delta| never exceeds the step after rounding
        delta = (base * step).quantize(_Q4, rounding=ROUND_DOWN)
        nxt = base + delta
        if nxt < self.floor:
            nxt = self.floor
        return nxt.quantize(_Q4)
