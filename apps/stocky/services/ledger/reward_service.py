"""
Reward Service (Canonical Ingestion Layer)
==========================================

Purpose:
- Validate a reward request, short-circuit retries, price it, compute fees
  and persist the reward with its five ledger legs in one transaction.
- Keep routes thin. No HTTP here.

Outcomes:
- RewardResult(status="ok")                 new reward written
- RewardResult(status="duplicate_ignored")  key already used, nothing written
- ValidationError                           rejected before any write
- ConflictError                             a concurrent duplicate won the race
- StorageError                              nothing committed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from apps.stocky.errors import ConstraintViolation, ValidationError
from apps.stocky.repositories.rewards_repository import RewardsRepository
from apps.stocky.services.ledger.fees import FeeBreakdown, FeeCalculator, q6
from apps.stocky.services.ledger.idempotency import IdempotencyGuard, normalize_key
from apps.stocky.services.ledger.models import FALLBACK_PRICE, build_ledger_entries
from apps.stocky.utils.clock import Clock, parse_timestamp

log = logging.getLogger("stocky.rewards")

MAX_UNITS = Decimal("1000000000000")


@dataclass(frozen=True)
class RewardResult:
    status: str
    id: int
    fee_percentages: Dict[str, Any]
    fees: Optional[FeeBreakdown] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": self.status,
            "id": self.id,
            "feePercentages": self.fee_percentages,
        }
        if self.fees is not None:
            out["fees"] = self.fees.to_dict()
        return out


def _parse_user_id(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValidationError("userId must be a positive integer")
    try:
        user_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValidationError("userId must be a positive integer")
    if user_id <= 0:
        raise ValidationError("userId must be a positive integer")
    return user_id


def _parse_units(raw: Any) -> Decimal:
    try:
        units = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("units must be a positive decimal")
    if not units.is_finite() or units <= 0:
        raise ValidationError("units must be positive")
    if units >= MAX_UNITS:
        raise ValidationError("units too large")
    # numeric(18,6)
    if q6(units) <= 0:
        raise ValidationError("units must be at least 0.000001")
    return q6(units)


def _parse_symbol(raw: Any) -> str:
    symbol = str(raw or "").strip().upper()
    if not symbol:
        raise ValidationError("symbol is required")
    return symbol


class RewardService:
    def __init__(
        self,
        repo: RewardsRepository,
        clock: Clock,
        *,
        fees: Optional[FeeCalculator] = None,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.fees = fees or FeeCalculator()
        self.guard = IdempotencyGuard(repo)

    def _parse_time(self, raw: Union[str, datetime, None]) -> datetime:
        if raw is None or raw == "":
            return self.clock.now()
        if isinstance(raw, datetime):
            return raw if raw.tzinfo is not None else raw.replace(tzinfo=timezone.utc)
        try:
            return parse_timestamp(str(raw))
        except ValueError:
            raise ValidationError(f"cannot parse timestamp {raw!r}")

    def current_price(self, symbol: str) -> Decimal:
        point = self.repo.latest_price(symbol)
        return point.price if point is not None else FALLBACK_PRICE

    def ingest(
        self,
        *,
        user_id: Any,
        symbol: Any,
        units: Any,
        timestamp: Union[str, datetime, None] = None,
        idempotency_key: Optional[str] = None,
    ) -> RewardResult:
        uid = _parse_user_id(user_id)
        sym = _parse_symbol(symbol)
        qty = _parse_units(units)
        event_time = self._parse_time(timestamp)
        key = normalize_key(idempotency_key)

        existing_id = self.guard.check(key)
        if existing_id is not None:
            log.info("duplicate reward ignored key=%s id=%s", key, existing_id)
            return RewardResult(
                status="duplicate_ignored",
                id=existing_id,
                fee_percentages=self.fees.fee_percentages(),
            )

        breakdown = self.fees.compute(self.current_price(sym), qty)
        entries = build_ledger_entries(uid, sym, breakdown)

        try:
            reward_id = self.repo.record_reward(
                user_id=uid,
                symbol=sym,
                units=qty,
                event_time=event_time,
                idempotency_key=key,
                entries=entries,
            )
        except ConstraintViolation as e:
            raise self.guard.resolve_conflict(key, e) from e

        log.info(
            "reward recorded id=%s user=%s symbol=%s units=%s total=%s",
            reward_id, uid, sym, breakdown.units, breakdown.total,
        )
        return RewardResult(
            status="ok",
            id=reward_id,
            fee_percentages=self.fees.fee_percentages(),
            fees=breakdown,
        )
