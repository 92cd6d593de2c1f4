from __future__ import annotations

import logging
from typing import Optional

from apps.stocky.errors import ConflictError, ConstraintViolation, StorageError
from apps.stocky.repositories.rewards_repository import RewardsRepository

log = logging.getLogger("stocky.rewards")


def normalize_key(key: Optional[str]) -> Optional[str]:
    key = (key or "").strip()
    return key or None


class IdempotencyGuard:
    """
    Short-circuits retried ingestion requests.

    The lookup is only a fast path. Two requests with the same key can both
    miss it; the unique index on rewards.idempotency_key rejects the loser,
    and resolve_conflict() turns that rejection into a conflict outcome.
    """

    def __init__(self, repo: RewardsRepository) -> None:
        self.repo = repo

    def check(self, key: Optional[str]) -> Optional[int]:
        """Id of the reward already recorded under key, or None to proceed."""
        key = normalize_key(key)
        if key is None:
            return None
        return self.repo.find_reward_id_by_key(key)

    def resolve_conflict(self, key: Optional[str], err: ConstraintViolation) -> ConflictError:
        existing_id = None
        key = normalize_key(key)
        if key is not None:
            try:
                existing_id = self.repo.find_reward_id_by_key(key)
            except StorageError:
                # the conflict outcome stands even if the follow-up read fails
                log.warning("could not resolve winning reward for key=%s", key)
        log.info("idempotency race lost key=%s existing_id=%s", key, existing_id)
        return ConflictError("duplicate idempotency key", existing_id=existing_id)
