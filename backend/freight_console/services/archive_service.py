"""
Archive service - snapshot naming, kind tagging, search and monthly statistics.

Archive file names follow a prefix convention:
- custom_archive_<name>_<timestamp>.json        renamed by a user
- manual_archive_<orderRefs>_<timestamp>.json   archived by hand from the schedule
- auto_archive_arrived_<timestamp>.json         old ARRIVED shipments swept automatically
- shipments_<timestamp>.json                    full data backups
The kind is derived once when the archive row is written and stored with it.
"""
import re
import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from freight_console.models import Archive, ArchiveKind, Shipment, ShipmentStatus

logger = logging.getLogger(__name__)


class ArchiveNotFoundError(Exception):
    pass


KIND_PREFIXES = [
    ("custom_archive_", ArchiveKind.CUSTOM),
    ("manual_archive_", ArchiveKind.MANUAL),
    ("auto_archive_arrived_", ArchiveKind.AUTO_ARRIVED),
    ("shipments_", ArchiveKind.DATA_BACKUP),
]

KIND_LABELS = {
    ArchiveKind.CUSTOM: "Custom",
    ArchiveKind.MANUAL: "Manual",
    ArchiveKind.AUTO_ARRIVED: "Auto (Arrived)",
    ArchiveKind.DATA_BACKUP: "Data Backup",
    ArchiveKind.OTHER: "Other",
}

AUTO_ARCHIVE_STATUSES = [ShipmentStatus.ARRIVED_PTA.value, ShipmentStatus.ARRIVED_KLM.value]
MANUAL_ARCHIVE_STATUSES = [
    ShipmentStatus.ARRIVED_PTA.value,
    ShipmentStatus.ARRIVED_KLM.value,
    ShipmentStatus.ARRIVED_OFFSITE.value,
    ShipmentStatus.STORED.value,
]

_TIMESTAMP_PART = re.compile(r"^\d{4}-\d{2}-\d{2}T")
_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")

# Snapshot key -> Shipment attribute
SNAPSHOT_FIELDS = {
    "id": "id",
    "supplier": "supplier",
    "orderRef": "order_ref",
    "productName": "product_name",
    "quantity": "quantity",
    "cbm": "cbm",
    "palletQty": "pallet_qty",
    "finalPod": "final_pod",
    "receivingWarehouse": "receiving_warehouse",
    "weekNumber": "week_number",
    "forwardingAgent": "forwarding_agent",
    "vesselName": "vessel_name",
    "incoterm": "incoterm",
    "notes": "notes",
    "latestStatus": "latest_status",
    "unloadingStartDate": "unloading_start_date",
    "unloadingCompletedDate": "unloading_completed_date",
    "inspectionDate": "inspection_date",
    "inspectionStatus": "inspection_status",
    "inspectionNotes": "inspection_notes",
    "inspectedBy": "inspected_by",
    "holdTypes": "hold_types",
    "failureReasons": "failure_reasons",
    "receivingDate": "receiving_date",
    "receivingStatus": "receiving_status",
    "receivingNotes": "receiving_notes",
    "receivedBy": "received_by",
    "receivedQuantity": "received_quantity",
    "discrepancies": "discrepancies",
    "rejectionDate": "rejection_date",
    "rejectionReason": "rejection_reason",
    "rejectedBy": "rejected_by",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

ARCHIVE_SEARCH_FIELDS = ["supplier", "orderRef", "productName", "finalPod"]
DB_ARCHIVED_SEARCH_COLUMNS = [Shipment.order_ref, Shipment.supplier, Shipment.product_name, Shipment.receiving_warehouse]


def archive_kind(file_name: str) -> ArchiveKind:
    for prefix, kind in KIND_PREFIXES:
        if file_name.startswith(prefix):
            return kind
    return ArchiveKind.OTHER


def _strip_prefix(file_name: str, prefix: str) -> str:
    stem = file_name[len(prefix):]
    return stem[:-5] if stem.endswith(".json") else stem


def _leading_parts(stem: str) -> Tuple[List[str], bool]:
    """Split on '_' and keep the parts before the first ISO timestamp part."""
    parts = stem.split("_")
    for idx, part in enumerate(parts):
        if _TIMESTAMP_PART.match(part):
            return parts[:idx], True
    return parts, False


def _date_label(stem: str) -> str:
    match = _DATE_PREFIX.match(stem)
    return match.group(1) if match else stem


def archive_display_name(file_name: str, custom_name: Optional[str] = None, kind: Optional[str] = None) -> str:
    """Human label for an archive; a stored custom name always wins."""
    if custom_name:
        return custom_name
    kind = ArchiveKind(kind) if kind else archive_kind(file_name)

    if kind == ArchiveKind.CUSTOM:
        stem = _strip_prefix(file_name, "custom_archive_")
        parts, found = _leading_parts(stem)
        return " ".join(parts) if found and parts else stem
    if kind == ArchiveKind.MANUAL:
        stem = _strip_prefix(file_name, "manual_archive_")
        parts, found = _leading_parts(stem)
        if found and parts:
            return f"Manual Archive - {', '.join(parts)}"
        return f"Manual Archive - {_date_label(stem)}"
    if kind == ArchiveKind.AUTO_ARRIVED:
        stem = _strip_prefix(file_name, "auto_archive_arrived_")
        return f"Auto Archive (Arrived) - {_date_label(stem)}"
    if kind == ArchiveKind.DATA_BACKUP:
        stem = _strip_prefix(file_name, "shipments_")
        return f"Data Backup - {_date_label(stem)}"
    return file_name[:-5] if file_name.endswith(".json") else file_name


def sanitize_for_filename(value: Optional[str]) -> str:
    if not value:
        return ""
    cleaned = re.sub(r"[^\w\-.]", "_", value)
    cleaned = re.sub(r"_{2,}", "_", cleaned)
    return cleaned.strip("_")


def archive_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    iso = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return re.sub(r"[:.]", "-", iso)


def custom_archive_file_name(display_name: str, now: Optional[datetime] = None) -> str:
    return f"custom_archive_{sanitize_for_filename(display_name)}_{archive_timestamp(now)}.json"


def manual_archive_file_name(order_refs: Iterable[Optional[str]], now: Optional[datetime] = None) -> str:
    refs = "_".join(part for part in (sanitize_for_filename(ref) for ref in order_refs) if part)[:100].strip("_")
    if not refs:
        return f"manual_archive_{archive_timestamp(now)}.json"
    return f"manual_archive_{refs}_{archive_timestamp(now)}.json"


def auto_archive_file_name(now: Optional[datetime] = None) -> str:
    return f"auto_archive_arrived_{archive_timestamp(now)}.json"


def backup_file_name(now: Optional[datetime] = None) -> str:
    return f"shipments_{archive_timestamp(now)}.json"


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def shipment_snapshot(shipment: Shipment, **overrides: Any) -> Dict[str, Any]:
    """JSON-safe camelCase copy of a shipment as stored in archive data."""
    snapshot = {key: _json_value(getattr(shipment, attr)) for key, attr in SNAPSHOT_FIELDS.items()}
    snapshot.update({key: _json_value(value) for key, value in overrides.items()})
    return snapshot


def _field(record: Dict[str, Any], camel_key: str) -> str:
    """Snapshot fields may be camelCase (console edits) or snake_case (older exports)."""
    value = record.get(camel_key)
    if value is None:
        value = record.get(SNAPSHOT_FIELDS.get(camel_key, camel_key))
    return "" if value is None else str(value)


def filter_records(records: Iterable[Dict[str, Any]], term: Optional[str], fields: List[str]) -> List[Dict[str, Any]]:
    """Case-insensitive substring match on any of the given fields."""
    records = list(records)
    if not term:
        return records
    needle = term.lower()
    return [r for r in records if any(needle in _field(r, f).lower() for f in fields)]


def filter_archived_shipments(shipments: Iterable[Dict[str, Any]], term: Optional[str]) -> List[Dict[str, Any]]:
    return filter_records(shipments, term, ARCHIVE_SEARCH_FIELDS)


def filter_db_archived(query, term: Optional[str]):
    """Narrow a Shipment query to a case-insensitive substring match on the search columns."""
    if not term:
        return query
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return query.filter(or_(*(column.ilike(pattern, escape="\\") for column in DB_ARCHIVED_SEARCH_COLUMNS)))


def summarize_archive(archive: Archive) -> Dict[str, Any]:
    return {
        "file_name": archive.file_name,
        "kind": archive.kind,
        "display_name": archive_display_name(archive.file_name, archive.custom_name, archive.kind),
        "archived_at": archive.archived_at,
        "total_shipments": archive.total_shipments or 0,
    }


def filter_archive_summaries(
    summaries: Iterable[Dict[str, Any]],
    search: Optional[str] = None,
    include_backups: bool = False,
) -> List[Dict[str, Any]]:
    """Drop data backups unless asked for, then match on file name or display name."""
    rows = [
        s for s in summaries
        if include_backups or s["kind"] != ArchiveKind.DATA_BACKUP.value
    ]
    if not search:
        return rows
    needle = search.lower()
    return [
        s for s in rows
        if needle in s["file_name"].lower() or needle in s["display_name"].lower()
    ]


def monthly_archive_stats(summaries: Iterable[Dict[str, Any]], month: str) -> Dict[str, Any]:
    """
    Chart data for one month (YYYY-MM): archive counts per kind and the number
    of archived shipments per day.
    """
    try:
        start = datetime.strptime(month, "%Y-%m")
    except ValueError:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")

    by_kind: Dict[str, int] = defaultdict(int)
    by_day: Dict[str, int] = defaultdict(int)
    archive_count = 0
    shipment_count = 0
    for summary in summaries:
        archived_at = summary.get("archived_at")
        if not archived_at or (archived_at.year, archived_at.month) != (start.year, start.month):
            continue
        kind = ArchiveKind(summary["kind"]) if summary.get("kind") else ArchiveKind.OTHER
        by_kind[KIND_LABELS[kind]] += 1
        by_day[archived_at.strftime("%Y-%m-%d")] += summary.get("total_shipments") or 0
        archive_count += 1
        shipment_count += summary.get("total_shipments") or 0

    return {
        "month": start.strftime("%Y-%m"),
        "total_archives": archive_count,
        "total_shipments": shipment_count,
        "by_kind": dict(sorted(by_kind.items())),
        "shipments_by_day": dict(sorted(by_day.items())),
    }


def find_old_arrived_shipments(shipments: Iterable[Shipment], days_old: int = 30, now: Optional[datetime] = None) -> List[Shipment]:
    cutoff = (now or datetime.utcnow()) - timedelta(days=days_old)
    old = []
    for shipment in shipments:
        if shipment.latest_status not in AUTO_ARCHIVE_STATUSES:
            continue
        last_change = shipment.updated_at or shipment.created_at
        if last_change and last_change < cutoff:
            old.append(shipment)
    return old


def auto_archive_stats(shipments: Iterable[Shipment], days_old: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
    shipments = list(shipments)
    now = now or datetime.utcnow()
    eligible = find_old_arrived_shipments(shipments, days_old, now)
    return {
        "eligible_for_archive": len(eligible),
        "total_arrived": len([s for s in shipments if s.latest_status in AUTO_ARCHIVE_STATUSES]),
        "eligible_shipments": [
            {
                "id": str(s.id),
                "supplier": s.supplier or "",
                "order_ref": s.order_ref,
                "arrived_date": s.updated_at or s.created_at,
                "days_old": (now - (s.updated_at or s.created_at)).days,
            }
            for s in eligible
        ],
    }


def get_archive(db: Session, file_name: str) -> Archive:
    archive = db.query(Archive).filter(Archive.file_name == file_name).first()
    if not archive:
        raise ArchiveNotFoundError(f"Archive {file_name} not found")
    return archive


def create_archive(db: Session, file_name: str, snapshots: List[Dict[str, Any]], now: Optional[datetime] = None) -> Archive:
    """Add an archive row; the caller commits."""
    archive = Archive(
        file_name=file_name,
        kind=archive_kind(file_name).value,
        archived_at=now or datetime.utcnow(),
        total_shipments=len(snapshots),
        data=snapshots,
    )
    db.add(archive)
    logger.info("Archived %d shipment(s) to %s", len(snapshots), file_name)
    return archive


def archive_shipments(
    db: Session,
    shipments: List[Shipment],
    file_name: str,
    now: Optional[datetime] = None,
) -> Archive:
    """Snapshot shipments into a new archive and remove the live rows; the caller commits."""
    archive = create_archive(db, file_name, [shipment_snapshot(s) for s in shipments], now)
    for shipment in shipments:
        db.delete(shipment)
    return archive


def rename_archive(db: Session, file_name: str, new_display_name: str, now: Optional[datetime] = None) -> Dict[str, str]:
    archive = get_archive(db, file_name)
    new_file_name = custom_archive_file_name(new_display_name, now)
    archive.file_name = new_file_name
    archive.kind = ArchiveKind.CUSTOM.value
    archive.custom_name = new_display_name
    logger.info("Archive renamed: %s -> %s", file_name, new_file_name)
    return {"old_file_name": file_name, "new_file_name": new_file_name, "custom_name": new_display_name}


def update_archive_data(db: Session, file_name: str, data: List[Dict[str, Any]]) -> Archive:
    archive = get_archive(db, file_name)
    archive.data = list(data)
    archive.total_shipments = len(data)
    logger.info("Archive updated: %s with %d shipments", file_name, len(data))
    return archive
