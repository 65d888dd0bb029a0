"""Liveness and readiness checks."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ....core.dependencies import get_pool
from ....infrastructure.persistence.pool import ConnectionPool

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> Dict[str, str]:
    """Liveness only: answers as long as the process runs, without touching the store."""
    return {"status": "ok"}


@router.get("/ready", response_model=None)
async def ready(
    pool: Optional[ConnectionPool] = Depends(get_pool),
) -> Dict[str, Any] | JSONResponse:
    """Readiness: the pool is initialised and a pooled connection answers ``SELECT 1``."""
    if pool is not None and await pool.ping():
        return {"db": "connected"}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"db": "down"},
    )
