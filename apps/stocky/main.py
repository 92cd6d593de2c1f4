# apps/stocky/main.py
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from apps.stocky.db import get_supabase
from apps.stocky.deps import get_clock
from apps.stocky.errors import StockyError
from apps.stocky.middleware.errors import install_error_handlers
from apps.stocky.middleware.request_log import RequestLogMiddleware
from apps.stocky.repositories.rewards_repository import RewardsRepository
from apps.stocky.routes.health import router as health_router
from apps.stocky.routes.rewards import router as rewards_router
from apps.stocky.routes.valuation import router as valuation_router
from apps.stocky.services.pricing.scheduler import PriceScheduler
from apps.stocky.utils.settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("stocky.main")

app = FastAPI(
    title="Stocky",
    version=settings.STOCKY_VERSION,
    description="Stock rewards ledger and portfolio valuation",
)

# -------------------------------------------------------------------
# Error handling (stable envelopes, no stack leaks)
# -------------------------------------------------------------------
install_error_handlers(app)

app.add_middleware(RequestLogMiddleware)

# -------------------------------------------------------------------
# Routers
# -------------------------------------------------------------------
app.include_router(health_router)
app.include_router(rewards_router)
app.include_router(valuation_router)

scheduler: Optional[AsyncIOScheduler] = None


@app.get("/")
async def root():
    return {
        "status": "Stocky Online",
        "version": settings.STOCKY_VERSION,
        "timezone": settings.TZ,
        "routes": [
            "/health",
            "/reward",
            "/today-stocks/{userId}",
            "/historical-inr/{userId}",
            "/stats/{userId}",
            "/portfolio/{userId}",
        ],
    }


# -------------------------------------------------------------------
# Startup: demo user + price scheduler
# -------------------------------------------------------------------
@app.on_event("startup")
async def startup_event():
    global scheduler
    log.info("Stocky starting (tz=%s)", settings.TZ)

    sb = get_supabase()
    if not sb:
        log.warning("Supabase not configured; storage-backed routes will fail")
        return
    repo = RewardsRepository(sb)

    if settings.SEED_DEMO_USER:
        try:
            repo.ensure_user(1, "Demo User")
        except StockyError as e:
            log.warning("demo user seed failed: %s", e.message)

    if settings.PRICE_SCHEDULER_ENABLED:
        scheduler = AsyncIOScheduler(timezone=settings.TZ)
        PriceScheduler(
            repo,
            get_clock(),
            interval_seconds=settings.PRICE_TICK_SECONDS,
            warmup_seconds=settings.PRICE_WARMUP_SECONDS,
        ).register(scheduler)
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    global scheduler
    if scheduler is not None and scheduler.running:
        # an in-flight tick may finish or be dropped; each append is its own write
        scheduler.shutdown(wait=False)
    scheduler = None
