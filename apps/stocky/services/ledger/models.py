"""
Ledger domain records.

RewardEvent, LedgerEntry and PricePoint are immutable once written; the
storage layer only ever inserts them. Rows coming back from PostgREST carry
numerics as JSON numbers or strings and timestamps as ISO strings, so each
record has a from_row that normalizes to Decimal / aware datetime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from apps.stocky.services.ledger.fees import FeeBreakdown, q4, q6
from apps.stocky.utils.clock import parse_timestamp


Account = Literal["stock_units", "cash", "brokerage", "stt", "gst"]

ACCOUNTS: tuple = ("stock_units", "cash", "brokerage", "stt", "gst")

# used whenever a symbol has no stored price point
FALLBACK_PRICE = Decimal("1000.0000")


def _dec(v: Any) -> Optional[Decimal]:
    if v is None:
        return None
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


def _ts(v: Any) -> Optional[datetime]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v
    return parse_timestamp(str(v))


@dataclass(frozen=True)
class User:
    id: int
    name: str


@dataclass(frozen=True)
class RewardEvent:
    id: int
    user_id: int
    symbol: str
    units: Decimal
    event_time: datetime
    idempotency_key: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "RewardEvent":
        return cls(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            symbol=str(row["symbol"]),
            units=_dec(row.get("units")) or Decimal("0"),
            event_time=_ts(row.get("event_time")),
            idempotency_key=row.get("idempotency_key") or None,
            created_at=_ts(row.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "symbol": self.symbol,
            "units": str(q6(self.units)),
            "eventTime": self.event_time.isoformat(),
            "idempotencyKey": self.idempotency_key,
            "createdAt": None if self.created_at is None else self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class LedgerEntry:
    """
    One leg of a reward. The legs are not balanced against each other:
    cash carries the full cost, the others record units and each fee.
    """
    user_id: int
    account: Account
    symbol: Optional[str] = None
    units: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "account": self.account,
            "symbol": self.symbol,
            "units": None if self.units is None else str(q6(self.units)),
            "amount": None if self.amount is None else str(q4(self.amount)),
            "meta": self.meta or {},
        }


@dataclass(frozen=True)
class PricePoint:
    symbol: str
    price: Decimal
    as_of: datetime
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PricePoint":
        return cls(
            id=None if row.get("id") is None else int(row["id"]),
            symbol=str(row["symbol"]),
            price=_dec(row["price"]),
            as_of=_ts(row["as_of"]),
            created_at=_ts(row.get("created_at")),
        )


def build_ledger_entries(user_id: int, symbol: str, fees: FeeBreakdown) -> List[LedgerEntry]:
    """The five legs written alongside every reward, in a fixed order."""
    return [
        LedgerEntry(user_id=user_id, account="stock_units", symbol=symbol, units=fees.units, amount=fees.notional),
        LedgerEntry(user_id=user_id, account="cash", amount=fees.total, meta={"reason": "purchase"}),
        LedgerEntry(user_id=user_id, account="brokerage", amount=fees.brokerage),
        LedgerEntry(user_id=user_id, account="stt", amount=fees.stt),
        LedgerEntry(user_id=user_id, account="gst", amount=fees.gst),
    ]
