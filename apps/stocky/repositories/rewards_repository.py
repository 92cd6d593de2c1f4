"""
Rewards Repository (Supabase/Postgres Adapter)
==============================================

Purpose:
- DB-facing adapter for users, rewards, ledger entries and stock prices.
- Works against a supabase-py client; tests swap in an in-memory double
  exposing the same query-builder surface.

Expected tables and functions: see apps/stocky/sql/schema.sql
1) public.users
2) public.rewards            (unique index on idempotency_key)
3) public.ledger_entries     (append-only, five legs per reward)
4) public.stock_prices       (append-only, index on (symbol, as_of desc))
5) public.record_reward(...) (reward + legs in one transaction)

Error mapping:
- 23505 unique_violation      -> ConstraintViolation
- 23503 foreign_key_violation -> ValidationError (unknown user)
- anything else from PostgREST or the transport -> StorageError
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError

from apps.stocky.errors import ConstraintViolation, StorageError, ValidationError
from apps.stocky.services.ledger.fees import q4, q6
from apps.stocky.services.ledger.models import LedgerEntry, PricePoint, RewardEvent

log = logging.getLogger("stocky.repo")

REWARD_COLUMNS = "id,user_id,symbol,units,event_time,idempotency_key,created_at"
PRICE_COLUMNS = "id,symbol,price,as_of,created_at"

PAGE_SIZE = 1000


class RewardsRepository:
    def __init__(
        self,
        supabase_client: Any,
        *,
        table_users: str = "users",
        table_rewards: str = "rewards",
        table_ledger: str = "ledger_entries",
        table_prices: str = "stock_prices",
        record_reward_fn: str = "record_reward",
    ) -> None:
        self.sb = supabase_client
        self.table_users = table_users
        self.table_rewards = table_rewards
        self.table_ledger = table_ledger
        self.table_prices = table_prices
        self.record_reward_fn = record_reward_fn

    # -----------------------------
    # Plumbing
    # -----------------------------
    @staticmethod
    def _execute(query: Any, what: str) -> Any:
        try:
            return query.execute()
        except APIError as e:
            code = getattr(e, "code", None)
            if code == "23505":
                raise ConstraintViolation(f"{what}: {e.message}", constraint=getattr(e, "details", None)) from e
            if code == "23503":
                raise ValidationError(f"{what}: referenced row does not exist") from e
            log.error("%s failed: %s (%s)", what, getattr(e, "message", e), code)
            raise StorageError(f"{what} failed") from e
        except httpx.HTTPError as e:
            log.error("%s transport error: %s", what, e)
            raise StorageError(f"{what} failed") from e

    def _select_all(self, build_query, what: str) -> List[Dict[str, Any]]:
        """PostgREST caps rows per response, so page with range()."""
        rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            r = self._execute(build_query().range(offset, offset + PAGE_SIZE - 1), what)
            page = getattr(r, "data", None) or []
            rows.extend(x for x in page if isinstance(x, dict))
            if len(page) < PAGE_SIZE:
                return rows
            offset += PAGE_SIZE

    # -----------------------------
    # Users
    # -----------------------------
    def ensure_user(self, user_id: int, name: str) -> None:
        payload = {"id": int(user_id), "name": name}
        self._execute(
            self.sb.table(self.table_users).upsert(payload, on_conflict="id", ignore_duplicates=True),
            "ensure user",
        )

    # -----------------------------
    # Rewards
    # -----------------------------
    def find_reward_id_by_key(self, idempotency_key: str) -> Optional[int]:
        r = self._execute(
            self.sb.table(self.table_rewards)
            .select("id")
            .eq("idempotency_key", idempotency_key)
            .limit(1),
            "idempotency lookup",
        )
        data = getattr(r, "data", None) or []
        if not data:
            return None
        return int(data[0]["id"])

    def record_reward(
        self,
        *,
        user_id: int,
        symbol: str,
        units: Decimal,
        event_time: datetime,
        idempotency_key: Optional[str],
        entries: List[LedgerEntry],
    ) -> int:
        """
        Insert the reward and its ledger legs through record_reward(), which
        runs as one Postgres transaction. Returns the new reward id.
        """
        params = {
            "p_user_id": int(user_id),
            "p_symbol": symbol,
            "p_units": str(q6(units)),
            "p_event_time": event_time.isoformat(),
            "p_idempotency_key": idempotency_key or None,
            "p_entries": [e.to_payload() for e in entries],
        }
        r = self._execute(self.sb.rpc(self.record_reward_fn, params), "record reward")
        data = getattr(r, "data", None)
        # scalar-returning functions come back bare; table-returning ones as rows
        if isinstance(data, list):
            data = data[0] if data else None
        if isinstance(data, dict):
            data = data.get("id", data.get(self.record_reward_fn))
        if data is None:
            raise StorageError("record reward returned no id")
        return int(data)

    def list_rewards(
        self,
        user_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[RewardEvent]:
        """Rewards for a user with start <= event_time < end, oldest first."""

        def build():
            q = self.sb.table(self.table_rewards).select(REWARD_COLUMNS).eq("user_id", int(user_id))
            if start is not None:
                q = q.gte("event_time", start.isoformat())
            if end is not None:
                q = q.lt("event_time", end.isoformat())
            return q.order("event_time", desc=False).order("id", desc=False)

        return [RewardEvent.from_row(row) for row in self._select_all(build, "list rewards")]

    def list_reward_symbols(self) -> List[str]:
        rows = self._select_all(
            lambda: self.sb.table(self.table_rewards).select("symbol").order("id", desc=False),
            "list reward symbols",
        )
        return sorted({str(r["symbol"]) for r in rows if r.get("symbol")})

    # -----------------------------
    # Prices
    # -----------------------------
    def latest_price(self, symbol: str) -> Optional[PricePoint]:
        r = self._execute(
            self.sb.table(self.table_prices)
            .select(PRICE_COLUMNS)
            .eq("symbol", symbol)
            .order("as_of", desc=True)
            .limit(1),
            "latest price",
        )
        data = getattr(r, "data", None) or []
        return PricePoint.from_row(data[0]) if data else None

    def latest_price_between(self, symbol: str, start: datetime, end: datetime) -> Optional[PricePoint]:
        """Most recent price with start <= as_of < end."""
        r = self._execute(
            self.sb.table(self.table_prices)
            .select(PRICE_COLUMNS)
            .eq("symbol", symbol)
            .gte("as_of", start.isoformat())
            .lt("as_of", end.isoformat())
            .order("as_of", desc=True)
            .limit(1),
            "latest price in window",
        )
        data = getattr(r, "data", None) or []
        return PricePoint.from_row(data[0]) if data else None

    def append_price(self, symbol: str, price: Decimal, as_of: datetime) -> PricePoint:
        payload = {"symbol": symbol, "price": str(q4(price)), "as_of": as_of.isoformat()}
        r = self._execute(self.sb.table(self.table_prices).insert(payload), "append price")
        data = getattr(r, "data", None) or []
        if data and isinstance(data[0], dict):
            return PricePoint.from_row(data[0])
        return PricePoint(symbol=symbol, price=q4(price), as_of=as_of)

    # -----------------------------
    # Health
    # -----------------------------
    def ping(self) -> Dict[str, bool]:
        checks: Dict[str, bool] = {}
        for table in (self.table_users, self.table_rewards, self.table_ledger, self.table_prices):
            try:
                self._execute(self.sb.table(table).select("id").limit(1), f"ping {table}")
                checks[table] = True
            except StorageError:
                checks[table] = False
        return checks
