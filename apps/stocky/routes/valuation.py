# apps/stocky/routes/valuation.py
from fastapi import APIRouter, Depends

from apps.stocky.deps import get_valuation_engine
from apps.stocky.services.valuation.engine import ValuationEngine

router = APIRouter(tags=["valuation"])


@router.get("/today-stocks/{user_id}")
def today_stocks(user_id: int, engine: ValuationEngine = Depends(get_valuation_engine)):
    items = [r.to_dict() for r in engine.today_positions(user_id)]
    return {"count": len(items), "items": items}


@router.get("/historical-inr/{user_id}")
def historical_inr(user_id: int, engine: ValuationEngine = Depends(get_valuation_engine)):
    return [row.to_dict() for row in engine.historical_daily_valuation(user_id)]


@router.get("/stats/{user_id}")
def stats(user_id: int, engine: ValuationEngine = Depends(get_valuation_engine)):
    return engine.stats(user_id)


@router.get("/portfolio/{user_id}")
def portfolio(user_id: int, engine: ValuationEngine = Depends(get_valuation_engine)):
    return [h.to_dict() for h in engine.portfolio(user_id)]
