"""
Shipment and post-arrival workflow schemas.
"""
from pydantic import BaseModel, field_validator
from uuid import UUID
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any

from freight_console.models import ShipmentStatus


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ShipmentBase(BaseModel):
    supplier: str
    order_ref: Optional[str] = None
    product_name: Optional[str] = None
    quantity: Optional[Decimal] = None
    cbm: Optional[Decimal] = None
    pallet_qty: Optional[Decimal] = None
    final_pod: Optional[str] = None
    receiving_warehouse: Optional[str] = None
    week_number: Optional[int] = None
    forwarding_agent: Optional[str] = None
    vessel_name: Optional[str] = None
    incoterm: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def empty_strings_are_null(cls, value):
        return _blank_to_none(value)


class ShipmentCreate(ShipmentBase):
    latest_status: ShipmentStatus = ShipmentStatus.PLANNED_SEAFREIGHT


class ShipmentUpdate(ShipmentBase):
    supplier: Optional[str] = None
    latest_status: Optional[ShipmentStatus] = None


class ShipmentResponse(ShipmentBase):
    id: UUID
    latest_status: str
    unloading_start_date: Optional[datetime] = None
    unloading_completed_date: Optional[datetime] = None
    inspection_date: Optional[datetime] = None
    inspection_status: Optional[str] = None
    inspection_notes: Optional[str] = None
    inspected_by: Optional[str] = None
    hold_types: Optional[List[str]] = None
    failure_reasons: Optional[List[str]] = None
    receiving_date: Optional[datetime] = None
    receiving_status: Optional[str] = None
    receiving_notes: Optional[str] = None
    received_by: Optional[str] = None
    received_quantity: Optional[Decimal] = None
    discrepancies: Optional[List[Any]] = None
    rejection_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    rejected_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ShipmentListResponse(BaseModel):
    shipments: List[Dict[str, Any]]
    total: int
    page: int
    limit: int


class WorkflowAction(BaseModel):
    key: str
    label: str


class WorkflowProgress(BaseModel):
    current_step: int
    total_steps: int
    percentage: int
    label: str


class WorkflowState(BaseModel):
    shipment_id: UUID
    status: str
    available_actions: List[WorkflowAction]
    progress: WorkflowProgress


class PostArrivalShipment(ShipmentResponse):
    available_actions: List[WorkflowAction] = []
    progress: Optional[WorkflowProgress] = None


class StartInspectionRequest(BaseModel):
    inspected_by: Optional[str] = None


class CompleteInspectionRequest(BaseModel):
    outcome: str
    notes: Optional[str] = None
    inspected_by: Optional[str] = None
    hold_types: List[str] = []
    failure_reasons: List[str] = []


class StartReceivingRequest(BaseModel):
    received_by: Optional[str] = None


class CompleteReceivingRequest(BaseModel):
    received_quantity: Optional[Decimal] = None
    notes: Optional[str] = None
    received_by: Optional[str] = None
    discrepancies: List[Any] = []

    @field_validator("received_quantity", mode="before")
    @classmethod
    def empty_quantity_is_null(cls, value):
        return _blank_to_none(value)


class RejectShipmentRequest(BaseModel):
    rejection_reason: str
    rejected_by: Optional[str] = None
    archive_shipment: bool = True


class RejectArchivedResponse(BaseModel):
    success: bool
    message: str
    archived: bool
    shipment_id: UUID
    archive_file_name: Optional[str] = None
