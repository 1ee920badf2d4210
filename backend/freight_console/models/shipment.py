"""
Shipment model - live shipment rows and their post-arrival workflow fields.
"""
from sqlalchemy import Column, String, DateTime, Numeric, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import UUID, JSONB
import uuid
from datetime import datetime
import enum
from freight_console.db.database import Base


class ShipmentStatus(str, enum.Enum):
    PLANNED_SEAFREIGHT = "planned_seafreight"
    PLANNED_AIRFREIGHT = "planned_airfreight"
    IN_TRANSIT_SEAWAY = "in_transit_seaway"
    IN_TRANSIT_AIRFREIGHT = "in_transit_airfreight"
    IN_TRANSIT_ROADWAY = "in_transit_roadway"
    MOORED = "moored"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    # Post-arrival workflow
    ARRIVED_PTA = "arrived_pta"
    ARRIVED_KLM = "arrived_klm"
    ARRIVED_OFFSITE = "arrived_offsite"
    UNLOADING = "unloading"
    INSPECTION_PENDING = "inspection_pending"
    INSPECTING = "inspecting"
    INSPECTION_PASSED = "inspection_passed"
    INSPECTION_ON_HOLD = "inspection_on_hold"
    INSPECTION_FAILED = "inspection_failed"
    RECEIVING = "receiving"
    RECEIVED = "received"
    STORED = "stored"
    # Terminal
    REJECTED = "rejected"
    ARCHIVED = "archived"


JSONType = JSON().with_variant(JSONB(), "postgresql")


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    supplier = Column(String, nullable=False)
    order_ref = Column(String, nullable=True, index=True)
    product_name = Column(String, nullable=True)
    quantity = Column(Numeric(12, 2), nullable=True)
    cbm = Column(Numeric(10, 3), nullable=True)
    pallet_qty = Column(Numeric(10, 2), nullable=True)
    final_pod = Column(String, nullable=True)  # e.g., "PTA", "KLM"
    receiving_warehouse = Column(String, nullable=True)
    week_number = Column(Integer, nullable=True)
    forwarding_agent = Column(String, nullable=True)
    vessel_name = Column(String, nullable=True)
    incoterm = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    latest_status = Column(String, nullable=False, default=ShipmentStatus.PLANNED_SEAFREIGHT.value, index=True)

    # Unloading
    unloading_start_date = Column(DateTime, nullable=True)
    unloading_completed_date = Column(DateTime, nullable=True)

    # Inspection
    inspection_date = Column(DateTime, nullable=True)
    inspection_status = Column(String, nullable=True)  # in_progress, passed, on_hold, failed
    inspection_notes = Column(Text, nullable=True)
    inspected_by = Column(String, nullable=True)
    hold_types = Column(JSONType, nullable=True)
    failure_reasons = Column(JSONType, nullable=True)

    # Receiving
    receiving_date = Column(DateTime, nullable=True)
    receiving_status = Column(String, nullable=True)  # in_progress, completed, partial, discrepancy
    receiving_notes = Column(Text, nullable=True)
    received_by = Column(String, nullable=True)
    received_quantity = Column(Numeric(12, 2), nullable=True)
    discrepancies = Column(JSONType, nullable=True)

    # Rejection / return to supplier
    rejection_date = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    rejected_by = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
