"""
conftest.py - Shared pytest fixtures for Stocky tests

- A pinned Clock (2026-10-19 12:00 Asia/Kolkata) so "today" is stable
- An in-memory Supabase double with the demo user seeded
- Repository / service / engine wired to it
- A FastAPI TestClient with the dependencies overridden
"""

import os

# keep the app from touching a real project or starting jobs on import
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ["PRICE_SCHEDULER_ENABLED"] = "false"
os.environ["SEED_DEMO_USER"] = "false"
os.environ["TZ"] = "Asia/Kolkata"

import random
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from hypothesis import settings as hypothesis_settings

# property tests share function-scoped fakes; disable per-example wall-clock deadline
hypothesis_settings.register_profile("stocky", deadline=None)
hypothesis_settings.load_profile("stocky")

from apps.stocky.deps import get_repo, get_reward_service, get_valuation_engine
from apps.stocky.main import app
from apps.stocky.repositories.rewards_repository import RewardsRepository
from apps.stocky.services.ledger.reward_service import RewardService
from apps.stocky.services.pricing.scheduler import PriceScheduler
from apps.stocky.services.pricing.simulator import PriceSimulator
from apps.stocky.services.valuation.engine import ValuationEngine
from apps.stocky.utils.clock import Clock

from tests.fake_supabase import FakeSupabase

IST = ZoneInfo("Asia/Kolkata")
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=IST)


def ist(y, m, d, hh=0, mm=0, ss=0):
    return datetime(y, m, d, hh, mm, ss, tzinfo=IST)


@pytest.fixture
def clock():
    return Clock("Asia/Kolkata", now_fn=lambda: NOW)


@pytest.fixture
def sb():
    fake = FakeSupabase()
    fake.add_user(1, "Demo User")
    return fake


@pytest.fixture
def repo(sb):
    return RewardsRepository(sb)


@pytest.fixture
def service(repo, clock):
    return RewardService(repo, clock)


@pytest.fixture
def engine(repo, clock):
    return ValuationEngine(repo, clock)


@pytest.fixture
def price_scheduler(repo, clock):
    return PriceScheduler(repo, clock, simulator=PriceSimulator(random.Random(7)))


@pytest.fixture
def client(repo, service, engine):
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_reward_service] = lambda: service
    app.dependency_overrides[get_valuation_engine] = lambda: engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
