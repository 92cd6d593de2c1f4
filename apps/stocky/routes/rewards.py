# apps/stocky/routes/rewards.py
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from apps.stocky.deps import get_reward_service
from apps.stocky.services.ledger.reward_service import RewardService

router = APIRouter(tags=["rewards"])


class RewardIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    symbol: str = Field(..., description="Ticker; trimmed and upper-cased")
    units: str = Field(..., description="Positive decimal string, e.g. \"10.5\"")
    timestamp: Optional[str] = Field(None, description="RFC 3339; naive values are UTC; defaults to now")
    idempotency_key: Optional[str] = Field(None, alias="idempotencyKey")


@router.post("/reward")
def post_reward(body: RewardIn, service: RewardService = Depends(get_reward_service)):
    result = service.ingest(
        user_id=body.user_id,
        symbol=body.symbol,
        units=body.units,
        timestamp=body.timestamp,
        idempotency_key=body.idempotency_key,
    )
    return result.to_dict()
