from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from apps.stocky.deps import get_repo
from apps.stocky.repositories.rewards_repository import RewardsRepository

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_root(repo: RewardsRepository = Depends(get_repo)):
    checks = repo.ping()
    ok = all(checks.values())
    return JSONResponse(content={"ok": ok, "checks": checks}, status_code=200 if ok else 503)
