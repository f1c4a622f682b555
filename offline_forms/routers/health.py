"""Liveness and readiness probes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db

router = APIRouter(tags=["health"])

SERVICE = "offline-forms"


def _scheduler_state(request: Request) -> str:
    scheduler = getattr(request.app.state, "purge_scheduler", None)
    if scheduler is None:
        return "disabled"
    return "running" if scheduler.running else "stopped"


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "healthy", "service": SERVICE}


@router.get("/ready")
async def readiness_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Database round trip plus the state of the nightly purge task."""
    await db.execute(text("SELECT 1"))
    return {
        "status": "ready",
        "service": SERVICE,
        "purge_scheduler": _scheduler_state(request),
    }
