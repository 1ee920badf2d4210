"""
Loading placeholder API endpoints.
"""
from fastapi import APIRouter, HTTPException, status, Query
from typing import Optional
from freight_console.services.skeletons import build_skeleton

router = APIRouter()


@router.get("/{kind}")
async def get_skeleton(
    kind: str,
    rows: Optional[int] = Query(None, ge=1, le=100),
    columns: Optional[int] = Query(None, ge=1, le=20),
    fields: Optional[int] = Query(None, ge=1, le=50),
    count: Optional[int] = Query(None, ge=1, le=50),
    items: Optional[int] = Query(None, ge=1, le=100),
):
    try:
        return build_skeleton(kind, rows=rows, columns=columns, fields=fields, count=count, items=items)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
