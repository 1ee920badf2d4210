"""
Archive model - named snapshots of shipment records.
"""
from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
import enum
from freight_console.db.database import Base
from freight_console.models.shipment import JSONType


class ArchiveKind(str, enum.Enum):
    CUSTOM = "custom"
    MANUAL = "manual"
    AUTO_ARRIVED = "auto_arrived"
    DATA_BACKUP = "data_backup"
    OTHER = "other"


class Archive(Base):
    __tablename__ = "archives"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    file_name = Column(String, nullable=False, unique=True, index=True)
    kind = Column(String, nullable=False, default=ArchiveKind.OTHER.value)
    custom_name = Column(String, nullable=True)
    archived_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    total_shipments = Column(Integer, nullable=False, default=0)
    data = Column(JSONType, nullable=False, default=list)  # camelCase shipment snapshots
