import random
from datetime import timedelta
from decimal import Decimal

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from hypothesis import given, settings
from hypothesis import strategies as st

from apps.stocky.errors import SchedulerTickError
from apps.stocky.services.pricing.scheduler import (
    DEFAULT_SYMBOLS,
    TICK_JOB_ID,
    WARMUP_JOB_ID,
    PriceScheduler,
)
from apps.stocky.services.pricing.simulator import PriceSimulator

from tests.conftest import NOW, ist
from tests.fake_supabase import api_error

D = Decimal


class TestSimulator:
    @given(st.integers(min_value=0, max_value=2**32))
    @settings(max_examples=200)
    def test_seed_in_range(self, seed):
        price = PriceSimulator(random.Random(seed)).next_price(None)
        # seed in [800, 1400) then at most 3% either way
        assert D("776") <= price <= D("1442")

    @given(st.integers(min_value=0, max_value=2**32))
    @settings(max_examples=200)
    def test_seed_price_half_open(self, seed):
        price = PriceSimulator(random.Random(seed)).seed_price()
        assert D("800") <= price < D("1400")

    @given(
        st.integers(min_value=0, max_value=2**32),
        st.decimals(min_value=D("10"), max_value=D("100000"), places=4),
    )
    @settings(max_examples=300)
    def test_step_within_three_percent(self, seed, previous):
        price = PriceSimulator(random.Random(seed)).next_price(previous)
        assert abs(price - previous) <= previous * D("0.03")
        assert price >= D("10")

    @given(
        st.integers(min_value=0, max_value=2**32),
        st.decimals(min_value=D("0.0001"), max_value=D("10.2"), places=4),
    )
    @settings(max_examples=200)
    def test_floor(self, seed, previous):
        assert PriceSimulator(random.Random(seed)).next_price(previous) >= D("10")

    def test_floor_applies_to_degenerate_previous(self):
        assert PriceSimulator(random.Random(1)).next_price(D("1")) == D("10.0000")

    def test_four_decimal_places(self):
        price = PriceSimulator(random.Random(3)).next_price(D("1234.5678"))
        assert price == price.quantize(D("0.0001"))

    def test_reproducible_with_seeded_rng(self):
        a = [PriceSimulator(random.Random(11)).next_price(D("900")) for _ in range(3)]
        b = [PriceSimulator(random.Random(11)).next_price(D("900")) for _ in range(3)]
        assert a == b


class TestTick:
    def test_default_symbols_when_no_rewards(self, price_scheduler, sb):
        appended = price_scheduler.tick()

        assert sorted(appended) == sorted(DEFAULT_SYMBOLS)
        rows = sb.rows("stock_prices")
        assert sorted(r["symbol"] for r in rows) == sorted(DEFAULT_SYMBOLS)
        assert all(r["as_of"] == NOW.isoformat() for r in rows)
        assert all(D("776") <= D(str(r["price"])) <= D("1442") for r in rows)

    def test_universe_is_rewarded_symbols(self, price_scheduler, sb):
        sb.add_reward(1, "TCS", "1", ist(2026, 10, 1, 10))
        sb.add_reward(1, "TCS", "1", ist(2026, 10, 2, 10))
        sb.add_reward(2, "HDFC", "1", ist(2026, 10, 2, 10))

        appended = price_scheduler.tick()

        assert sorted(appended) == ["HDFC", "TCS"]
        assert len(sb.rows("stock_prices")) == 2

    def test_walks_from_latest_stored_price(self, price_scheduler, sb):
        sb.add_reward(1, "TCS", "1", ist(2026, 10, 1, 10))
        sb.add_price("TCS", "500.0000", ist(2026, 10, 18, 10))
        sb.add_price("TCS", "2000.0000", ist(2026, 10, 19, 10))

        price = price_scheduler.tick()["TCS"]

        assert D("1940") <= price <= D("2060")

    def test_successive_ticks_stay_within_band(self, price_scheduler, repo, sb):
        sb.add_reward(1, "X", "1", ist(2026, 10, 1, 10))
        previous = None
        minute = [0]

        def advancing_now():
            minute[0] += 1
            return NOW + timedelta(minutes=minute[0])

        price_scheduler.clock._now_fn = advancing_now
        for _ in range(20):
            price = price_scheduler.tick()["X"]
            if previous is not None:
                assert abs(price - previous) <= previous * D("0.03")
            assert price >= D("10")
            previous = price
        assert repo.latest_price("X").price == previous
        assert len(sb.rows("stock_prices")) == 20

    def test_failed_symbol_does_not_block_the_rest(self, price_scheduler, sb):
        sb.add_reward(1, "AAA", "1", ist(2026, 10, 1, 10))
        sb.add_reward(1, "BBB", "1", ist(2026, 10, 1, 10))
        sb.fail("stock_prices.insert")

        with pytest.raises(SchedulerTickError):
            price_scheduler.tick()

        assert [r["symbol"] for r in sb.rows("stock_prices")] == ["BBB"]

    def test_run_tick_swallows_errors_and_next_tick_proceeds(self, price_scheduler, sb):
        sb.fail("rewards.select", api_error("08006", "connection failure"))

        price_scheduler.run_tick()
        assert sb.rows("stock_prices") == []

        price_scheduler.run_tick()
        assert len(sb.rows("stock_prices")) == len(DEFAULT_SYMBOLS)


class TestRegister:
    def test_registers_interval_and_warmup_jobs(self, repo, clock):
        scheduler = AsyncIOScheduler(timezone="Asia/Kolkata")
        PriceScheduler(repo, clock, interval_seconds=3600, warmup_seconds=2).register(scheduler)

        tick = scheduler.get_job(TICK_JOB_ID)
        warmup = scheduler.get_job(WARMUP_JOB_ID)

        assert tick is not None and warmup is not None
        assert tick.trigger.interval == timedelta(hours=1)
        assert tick.max_instances == 1
        assert tick.coalesce is True
        assert warmup.trigger.run_date == NOW + timedelta(seconds=2)
