from __future__ import annotations

import logging
import time

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api.dependencies import DbDep

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


def _check_db(db: Session) -> bool:
    db.execute(text("SELECT 1"))
    return True


def _check_redis() -> bool:
    try:
        from app.db.redis_client import get_redis_client
        return bool(get_redis_client().ping())
    except Exception as exc:  # noqa: BLE001
        logger.warning("Redis readiness check failed: %s", exc)
        return False


@router.get("/healthz")
async def healthz(db: DbDep) -> dict[str, str]:
    """Basic liveness probe (cheap)."""
    try:
        _check_db(db)
    except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=503, detail="Database connectivity check failed") from exc
    return {"status": "ok"}


@router.get("/live")
async def live() -> dict[str, str]:
    """Kubernetes-style liveness endpoint (no dependencies)."""
    return {"status": "alive"}


@router.get("/ready")
async def ready(db: DbDep) -> dict[str, object]:
    """Readiness probe: database and the Celery broker."""
    start = time.time()
    try:
        db_ok = _check_db(db)
    except Exception:  # noqa: BLE001
        db_ok = False
    redis_ok = _check_redis()
    duration_ms = int((time.time() - start) * 1000)
    if not (db_ok and redis_ok):
        raise HTTPException(status_code=503, detail={
            "db": db_ok,
            "redis": redis_ok,
            "latency_ms": duration_ms,
        })
    return {"status": "ready", "db": db_ok, "redis": redis_ok, "latency_ms": duration_ms}
