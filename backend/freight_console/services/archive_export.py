"""
Excel export of archive snapshots.
"""
import pandas as pd
from pathlib import Path
import tempfile
import time
import logging
from freight_console.models import Archive
from freight_console.services.archive_service import archive_display_name, sanitize_for_filename

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ("supplier", "Supplier"),
    ("orderRef", "Order Ref"),
    ("productName", "Product"),
    ("quantity", "Qty"),
    ("palletQty", "Pallets"),
    ("finalPod", "Destination"),
    ("receivingWarehouse", "Warehouse"),
    ("weekNumber", "Week"),
    ("latestStatus", "Status"),
    ("inspectionStatus", "Inspection"),
    ("receivingStatus", "Receiving"),
    ("rejectionReason", "Rejection Reason"),
    ("updatedAt", "Last Updated"),
]


def generate_archive_excel(archive: Archive) -> str:
    """
    Write an archive to a workbook with two sheets:
    - Summary
    - Shipments
    """
    start_time = time.perf_counter()
    display_name = archive_display_name(archive.file_name, archive.custom_name, archive.kind)
    file_path = Path(tempfile.gettempdir()) / f"{sanitize_for_filename(display_name) or 'archive'}.xlsx"

    rows = []
    for record in archive.data or []:
        rows.append({label: record.get(key) for key, label in EXPORT_COLUMNS})

    with pd.ExcelWriter(file_path, engine="openpyxl") as writer:
        summary = {
            "Metric": ["Archive", "File Name", "Archived At", "Total Shipments"],
            "Value": [
                display_name,
                archive.file_name,
                archive.archived_at.isoformat() if archive.archived_at else "",
                archive.total_shipments or 0,
            ],
        }
        pd.DataFrame(summary).to_excel(writer, sheet_name="Summary", index=False)
        pd.DataFrame(rows, columns=[label for _, label in EXPORT_COLUMNS]).to_excel(
            writer, sheet_name="Shipments", index=False
        )

    duration = round(time.perf_counter() - start_time, 3)
    logger.info("Archive export %s rows=%d in %.2fs", archive.file_name, len(rows), duration)
    return str(file_path)
