"""Operator-triggered expiry sweep."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..schemas.form import PurgeRequest
from ..services import purge_svc

router = APIRouter(prefix="/api/purge", tags=["purge"])


@router.post("")
async def run_purge(data: PurgeRequest | None = None, db: AsyncSession = Depends(get_db)):
    data = data or PurgeRequest()
    result = await purge_svc.run_manual(
        db,
        sync_days=settings.purge_synced_days if data.sync_days is None else data.sync_days,
        stale_days=settings.purge_stale_days if data.stale_days is None else data.stale_days,
    )
    return result.to_dict()
