"""History search across all forms."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.form import HistoryRead
from ..services import store_svc

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("")
async def search_history(
    status: str | None = None,
    category_code: str | None = None,
    form_id: uuid.UUID | None = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    entries = await store_svc.find_history(
        db, status=status, category_code=category_code, form_id=form_id,
        limit=limit, offset=offset,
    )
    total = await store_svc.count_history(
        db, status=status, category_code=category_code, form_id=form_id,
    )
    return {
        "success": True,
        "message": "History retrieved successfully",
        "count": total,
        "data": [HistoryRead.model_validate(e).model_dump(mode="json") for e in entries],
    }
