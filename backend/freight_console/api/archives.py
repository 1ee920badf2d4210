"""
Shipment archive API endpoints.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from freight_console.config.defaults_loader import get_auto_archive_days
from freight_console.db.database import get_db
from freight_console.models import Shipment, Archive
from freight_console.schemas.archive import (
    ArchiveSummary,
    ArchiveDetail,
    ArchiveStats,
    ArchiveRenameRequest,
    ArchiveRenameResponse,
    ArchiveUpdateRequest,
    ManualArchiveRequest,
    ManualArchiveResponse,
    AutoArchiveRequest,
    AutoArchiveResponse,
)
from freight_console.services.archive_export import generate_archive_excel
from freight_console.services.archive_service import (
    ArchiveNotFoundError,
    MANUAL_ARCHIVE_STATUSES,
    archive_display_name,
    archive_shipments,
    auto_archive_file_name,
    auto_archive_stats,
    backup_file_name,
    create_archive,
    filter_archive_summaries,
    filter_archived_shipments,
    find_old_arrived_shipments,
    get_archive,
    manual_archive_file_name,
    monthly_archive_stats,
    rename_archive,
    shipment_snapshot,
    summarize_archive,
    update_archive_data,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _load_archive(db: Session, file_name: str) -> Archive:
    try:
        return get_archive(db, file_name)
    except ArchiveNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _summaries(db: Session) -> List[dict]:
    archives = db.query(Archive).order_by(Archive.archived_at.desc()).all()
    return [summarize_archive(a) for a in archives]


@router.get("", response_model=List[ArchiveSummary])
async def list_archives(
    search: Optional[str] = None,
    include_backups: bool = False,
    db: Session = Depends(get_db)
):
    """List archives newest first; data backups only on request."""
    return filter_archive_summaries(_summaries(db), search, include_backups)


@router.get("/stats", response_model=ArchiveStats)
async def get_archive_stats(
    month: str,
    db: Session = Depends(get_db)
):
    """Archive counts by kind and shipments archived per day for one month."""
    try:
        return monthly_archive_stats(_summaries(db), month)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/manual", response_model=ManualArchiveResponse, status_code=status.HTTP_201_CREATED)
async def manual_archive(
    request: ManualArchiveRequest,
    db: Session = Depends(get_db)
):
    """Archive selected arrived or stored shipments and remove them from the live list."""
    shipments = (
        db.query(Shipment)
        .filter(Shipment.id.in_(request.shipment_ids))
        .filter(Shipment.latest_status.in_(MANUAL_ARCHIVE_STATUSES))
        .all()
    )
    if not shipments:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid ARRIVED or STORED shipments found to archive"
        )

    file_name = manual_archive_file_name([s.order_ref for s in shipments])
    try:
        archive_shipments(db, shipments, file_name)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Manual archive %s failed", file_name)
        raise
    remaining = db.query(Shipment).count()
    return {
        "archived_count": len(shipments),
        "remaining_count": remaining,
        "archive_file_name": file_name,
    }


@router.post("/backup", response_model=ArchiveSummary, status_code=status.HTTP_201_CREATED)
async def create_data_backup(db: Session = Depends(get_db)):
    """Snapshot every live shipment into a data backup; live rows are kept."""
    shipments = db.query(Shipment).order_by(Shipment.created_at).all()
    archive = create_archive(db, backup_file_name(), [shipment_snapshot(s) for s in shipments])
    db.commit()
    db.refresh(archive)
    return summarize_archive(archive)


@router.get("/auto-archive/stats")
async def get_auto_archive_stats(
    days_old: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Arrived shipments old enough to be auto-archived."""
    days = days_old if days_old is not None else get_auto_archive_days()
    return auto_archive_stats(db.query(Shipment).all(), days)


@router.post("/auto-archive", response_model=AutoArchiveResponse)
async def run_auto_archive(
    request: Optional[AutoArchiveRequest] = None,
    db: Session = Depends(get_db)
):
    """Archive arrived shipments that have not moved for days_old days."""
    days = request.days_old if request and request.days_old is not None else get_auto_archive_days()
    eligible = find_old_arrived_shipments(db.query(Shipment).all(), days)
    if not eligible:
        return {"archived_count": 0, "archive_file_name": None, "message": "No shipments eligible for archiving"}

    file_name = auto_archive_file_name()
    try:
        archive_shipments(db, eligible, file_name)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Auto archive %s failed", file_name)
        raise
    logger.info("Auto-archived %d shipments older than %d days", len(eligible), days)
    return {
        "archived_count": len(eligible),
        "archive_file_name": file_name,
        "message": f"Archived {len(eligible)} shipment(s) older than {days} days",
    }


@router.get("/{file_name}", response_model=ArchiveDetail)
async def get_archive_detail(
    file_name: str,
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Full archive, optionally filtered to matching shipments."""
    archive = _load_archive(db, file_name)
    return {
        "file_name": archive.file_name,
        "kind": archive.kind,
        "display_name": archive_display_name(archive.file_name, archive.custom_name, archive.kind),
        "archived_at": archive.archived_at,
        "total_shipments": archive.total_shipments or 0,
        "custom_name": archive.custom_name,
        "data": filter_archived_shipments(archive.data or [], search),
    }


@router.put("/{file_name}/rename", response_model=ArchiveRenameResponse)
async def rename_archive_endpoint(
    file_name: str,
    request: ArchiveRenameRequest,
    db: Session = Depends(get_db)
):
    new_name = (request.new_name or "").strip()
    if not new_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="New name cannot be empty")
    _load_archive(db, file_name)
    result = rename_archive(db, file_name, new_name)
    db.commit()
    return result


@router.put("/{file_name}", response_model=ArchiveDetail)
async def update_archive(
    file_name: str,
    request: ArchiveUpdateRequest,
    db: Session = Depends(get_db)
):
    """Replace the archived shipment snapshots."""
    _load_archive(db, file_name)
    archive = update_archive_data(db, file_name, request.data)
    db.commit()
    db.refresh(archive)
    return {
        "file_name": archive.file_name,
        "kind": archive.kind,
        "display_name": archive_display_name(archive.file_name, archive.custom_name, archive.kind),
        "archived_at": archive.archived_at,
        "total_shipments": archive.total_shipments,
        "custom_name": archive.custom_name,
        "data": archive.data or [],
    }


@router.get("/{file_name}/export")
async def export_archive(
    file_name: str,
    db: Session = Depends(get_db)
):
    """Download the archive as an Excel workbook."""
    archive = _load_archive(db, file_name)
    file_path = generate_archive_excel(archive)
    display_name = archive_display_name(archive.file_name, archive.custom_name, archive.kind)
    return FileResponse(
        file_path,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=f"{display_name}.xlsx"
    )
