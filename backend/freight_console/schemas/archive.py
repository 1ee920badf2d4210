"""
Archive schemas.
"""
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional, List, Dict, Any


class ArchiveSummary(BaseModel):
    file_name: str
    kind: str
    display_name: str
    archived_at: datetime
    total_shipments: int


class ArchiveDetail(ArchiveSummary):
    custom_name: Optional[str] = None
    data: List[Dict[str, Any]]


class ArchiveStats(BaseModel):
    month: str
    total_archives: int
    total_shipments: int
    by_kind: Dict[str, int]
    shipments_by_day: Dict[str, int]


class ArchiveRenameRequest(BaseModel):
    new_name: str


class ArchiveRenameResponse(BaseModel):
    old_file_name: str
    new_file_name: str
    custom_name: str


class ArchiveUpdateRequest(BaseModel):
    data: List[Dict[str, Any]]


class ManualArchiveRequest(BaseModel):
    shipment_ids: List[UUID]


class ManualArchiveResponse(BaseModel):
    archived_count: int
    remaining_count: int
    archive_file_name: str


class AutoArchiveRequest(BaseModel):
    days_old: Optional[int] = None


class AutoArchiveResponse(BaseModel):
    archived_count: int
    archive_file_name: Optional[str] = None
    message: str
