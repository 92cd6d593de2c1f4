"""
Valuation Engine
================

Read-side aggregations over rewards and stock prices. Never writes.

Day bucketing uses the Clock's zone: a reward or price belongs to the local
calendar day its absolute timestamp falls on.

- today_positions             rewards inside today's window, oldest first
- historical_daily_valuation  one row per past day: sum(units x that day's last price)
- stats                       today's units per symbol + all-time holdings at latest price
- portfolio                   all-time holdings at latest price
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from apps.stocky.repositories.rewards_repository import RewardsRepository
from apps.stocky.services.ledger.fees import q4, q6
from apps.stocky.services.ledger.models import FALLBACK_PRICE, RewardEvent
from apps.stocky.utils.clock import Clock


@dataclass(frozen=True)
class Holding:
    symbol: str
    units: Decimal
    price: Decimal

    @property
    def value(self) -> Decimal:
        return self.units * self.price

    def to_dict(self) -> Dict[str, str]:
        return {
            "symbol": self.symbol,
            "units": str(q6(self.units)),
            "price": str(q4(self.price)),
            "value": str(q4(self.value)),
        }


@dataclass(frozen=True)
class DailyValuation:
    day: date
    total_value: Decimal

    def to_dict(self) -> Dict[str, str]:
        return {"day": self.day.isoformat(), "totalValue": str(q4(self.total_value))}


def _units_by_symbol(rewards: List[RewardEvent]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for r in rewards:
        totals[r.symbol] += r.units
    return dict(sorted(totals.items()))


class ValuationEngine:
    def __init__(self, repo: RewardsRepository, clock: Clock) -> None:
        self.repo = repo
        self.clock = clock

    # -----------------------------
    # Today
    # -----------------------------
    def today_positions(self, user_id: int) -> List[RewardEvent]:
        start, end = self.clock.today_range()
        return self.repo.list_rewards(user_id, start=start, end=end)

    def today_by_symbol(self, user_id: int) -> Dict[str, Decimal]:
        return _units_by_symbol(self.today_positions(user_id))

    # -----------------------------
    # History
    # -----------------------------
    def historical_daily_valuation(self, user_id: int) -> List[DailyValuation]:
        today_start, _ = self.clock.today_range()
        rewards = self.repo.list_rewards(user_id, end=today_start)

        buckets: Dict[Tuple[date, str], Decimal] = defaultdict(Decimal)
        for r in rewards:
            buckets[(self.clock.local_day(r.event_time), r.symbol)] += r.units

        per_day: Dict[date, Decimal] = defaultdict(Decimal)
        for (day, symbol), units in sorted(buckets.items()):
            per_day[day] += units * self._price_on(symbol, day)

        return [DailyValuation(day=d, total_value=v) for d, v in sorted(per_day.items())]

    def _price_on(self, symbol: str, day: date) -> Decimal:
        """Last price observed during that local day, else the fallback."""
        start, end = self.clock.day_range(day)
        point = self.repo.latest_price_between(symbol, start, end)
        return point.price if point is not None else FALLBACK_PRICE

    # -----------------------------
    # Holdings
    # -----------------------------
    def latest_price(self, symbol: str) -> Decimal:
        point = self.repo.latest_price(symbol)
        return point.price if point is not None else FALLBACK_PRICE

    def portfolio(self, user_id: int) -> List[Holding]:
        totals = _units_by_symbol(self.repo.list_rewards(user_id))
        return [Holding(symbol=s, units=u, price=self.latest_price(s)) for s, u in totals.items()]

    def stats(self, user_id: int) -> Dict[str, Any]:
        today = self.today_by_symbol(user_id)
        holdings = self.portfolio(user_id)
        total = sum((h.value for h in holdings), Decimal("0"))
        return {
            "todayBySymbol": [{"symbol": s, "units": str(q6(u))} for s, u in today.items()],
            "currentPortfolioValue": str(q4(total)),
            "breakdown": [h.to_dict() for h in holdings],
        }
