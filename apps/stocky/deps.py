from functools import lru_cache

from apps.stocky.db import get_supabase
from apps.stocky.errors import StorageError
from apps.stocky.repositories.rewards_repository import RewardsRepository
from apps.stocky.services.ledger.reward_service import RewardService
from apps.stocky.services.valuation.engine import ValuationEngine
from apps.stocky.utils.clock import Clock
from apps.stocky.utils.settings import settings


@lru_cache(maxsize=1)
def get_clock() -> Clock:
    return Clock(settings.TZ)


def get_repo() -> RewardsRepository:
    sb = get_supabase()
    if not sb:
        raise StorageError("Supabase not configured")
    return RewardsRepository(sb)


def get_reward_service() -> RewardService:
    return RewardService(get_repo(), get_clock())


def get_valuation_engine() -> ValuationEngine:
    return ValuationEngine(get_repo(), get_clock())
