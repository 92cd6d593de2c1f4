# apps/stocky/services/pricing/scheduler.py

import logging
import threading
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from apps.stocky.errors import SchedulerTickError, StockyError
from apps.stocky.repositories.rewards_repository import RewardsRepository
from apps.stocky.services.pricing.simulator import PriceSimulator
from apps.stocky.utils.clock import Clock

log = logging.getLogger("stocky.pricing")

DEFAULT_SYMBOLS = ("RELIANCE", "TCS", "INFY")

TICK_JOB_ID = "price_tick"
WARMUP_JOB_ID = "price_warmup"


class PriceScheduler:
    """
    Appends one simulated price per symbol on every tick.

    Universe = every symbol ever rewarded, or DEFAULT_SYMBOLS when there
    are no rewards yet. Ticks run one at a time; a failed tick is logged and
    the next one starts clean.
    """

    def __init__(
        self,
        repo: RewardsRepository,
        clock: Clock,
        *,
        simulator: Optional[PriceSimulator] = None,
        interval_seconds: int = 3600,
        warmup_seconds: int = 2,
        default_symbols: Sequence[str] = DEFAULT_SYMBOLS,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.simulator = simulator or PriceSimulator()
        self.interval_seconds = int(interval_seconds)
        self.warmup_seconds = int(warmup_seconds)
        self.default_symbols = tuple(default_symbols)
        self._lock = threading.Lock()

    def symbols(self) -> List[str]:
        syms = self.repo.list_reward_symbols()
        return syms or list(self.default_symbols)

    def tick(self) -> Dict[str, Decimal]:
        with self._lock:
            symbols = self.symbols()
            as_of = self.clock.now()
            appended: Dict[str, Decimal] = {}
            failed: List[str] = []

            for symbol in symbols:
                try:
                    last = self.repo.latest_price(symbol)
                    price = self.simulator.next_price(None if last is None else last.price)
                    self.repo.append_price(symbol, price, as_of)
                    appended[symbol] = price
                except StockyError as e:
                    log.warning("[PRICES] %s update failed: %s", symbol, e.message)
                    failed.append(symbol)

            if failed:
                raise SchedulerTickError(
                    f"price update failed for {len(failed)}/{len(symbols)} symbols: {', '.join(failed)}"
                )

            log.info("[PRICES] updated prices for %d symbols", len(appended))
            return appended

    def run_tick(self) -> None:
        """Job entrypoint. Never raises, so the scheduler keeps its jobs."""
        try:
            self.tick()
        except StockyError as e:
            log.warning("[PRICES] tick failed: %s", e.message)
        except Exception:
            log.exception("[PRICES] tick crashed")

    def register(self, scheduler: AsyncIOScheduler) -> None:
        scheduler.add_job(
            self.run_tick,
            "interval",
            seconds=self.interval_seconds,
            id=TICK_JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.add_job(
            self.run_tick,
            "date",
            run_date=self.clock.now() + timedelta(seconds=self.warmup_seconds),
            id=WARMUP_JOB_ID,
            replace_existing=True,
        )
        log.info(
            "[PRICES] scheduler registered, interval %ss, warm-up in %ss",
            self.interval_seconds,
            self.warmup_seconds,
        )
