"""
Shipment API endpoints, including the post-arrival workflow actions.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Union
from uuid import UUID
from freight_console.db.database import get_db
from freight_console.models import Shipment, ShipmentStatus
from freight_console.schemas.shipment import (
    ShipmentCreate,
    ShipmentUpdate,
    ShipmentResponse,
    ShipmentListResponse,
    PostArrivalShipment,
    WorkflowState,
    StartInspectionRequest,
    CompleteInspectionRequest,
    StartReceivingRequest,
    CompleteReceivingRequest,
    RejectShipmentRequest,
    RejectArchivedResponse,
)
from freight_console.services import email_service
from freight_console.services import workflow
from freight_console.services.archive_service import (
    create_archive,
    filter_db_archived,
    manual_archive_file_name,
    shipment_snapshot,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_shipment(db: Session, shipment_id: UUID) -> Shipment:
    shipment = db.query(Shipment).filter(Shipment.id == shipment_id).first()
    if not shipment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shipment {shipment_id} not found"
        )
    return shipment


def _apply(db: Session, shipment: Shipment, action, *args, **kwargs) -> Shipment:
    """Run a workflow transition and commit; status conflicts are 400, bad input 422."""
    try:
        action(shipment, *args, **kwargs)
    except workflow.WorkflowError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment %s moved to %s", shipment.id, shipment.latest_status)
    return shipment


def _with_workflow(shipment: Shipment) -> dict:
    data = ShipmentResponse.model_validate(shipment).model_dump()
    data["available_actions"] = workflow.get_available_actions(shipment.latest_status)
    data["progress"] = workflow.get_workflow_progress(shipment.latest_status)
    return data


@router.get("", response_model=ShipmentListResponse)
async def list_shipments(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    search: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Paginated shipments; status=archived lists DB-flagged archived rows."""
    query = db.query(Shipment)
    if status_filter:
        query = query.filter(Shipment.latest_status == status_filter)
    query = filter_db_archived(query, search)
    total = query.count()
    shipments = (
        query.order_by(Shipment.updated_at.desc(), Shipment.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "shipments": [shipment_snapshot(s) for s in shipments],
        "total": total,
        "page": page,
        "limit": limit,
    }


@router.get("/post-arrival", response_model=List[PostArrivalShipment])
async def list_post_arrival_shipments(db: Session = Depends(get_db)):
    """Shipments in the post-arrival workflow with their actions and progress."""
    shipments = (
        db.query(Shipment)
        .filter(Shipment.latest_status.in_(workflow.POST_ARRIVAL_STATUSES))
        .order_by(Shipment.updated_at.desc())
        .all()
    )
    return [_with_workflow(s) for s in shipments]


@router.post("", response_model=ShipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    shipment_data: ShipmentCreate,
    db: Session = Depends(get_db)
):
    if not shipment_data.supplier or not shipment_data.supplier.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Supplier is required")
    values = shipment_data.model_dump()
    values["latest_status"] = shipment_data.latest_status.value
    shipment = Shipment(**values)
    db.add(shipment)
    db.commit()
    db.refresh(shipment)
    logger.info("Shipment created: id=%s order_ref=%s", shipment.id, shipment.order_ref)
    return shipment


@router.get("/{shipment_id}", response_model=ShipmentResponse)
async def get_shipment(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    return _get_shipment(db, shipment_id)


@router.put("/{shipment_id}", response_model=ShipmentResponse)
async def update_shipment(
    shipment_id: UUID,
    shipment_data: ShipmentUpdate,
    db: Session = Depends(get_db)
):
    shipment = _get_shipment(db, shipment_id)
    for field, value in shipment_data.model_dump(exclude_unset=True).items():
        if field == "latest_status" and value is not None:
            value = ShipmentStatus(value).value
        setattr(shipment, field, value)
    db.commit()
    db.refresh(shipment)
    return shipment


@router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    shipment = _get_shipment(db, shipment_id)
    db.delete(shipment)
    db.commit()
    return None


@router.get("/{shipment_id}/workflow", response_model=WorkflowState)
async def get_shipment_workflow(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    shipment = _get_shipment(db, shipment_id)
    return {
        "shipment_id": shipment.id,
        "status": shipment.latest_status,
        "available_actions": workflow.get_available_actions(shipment.latest_status),
        "progress": workflow.get_workflow_progress(shipment.latest_status),
    }


@router.post("/{shipment_id}/start-unloading", response_model=ShipmentResponse)
async def start_unloading(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    shipment = _apply(db, _get_shipment(db, shipment_id), workflow.start_unloading)
    email_service.notify_shipment_arrival(shipment)
    return shipment


@router.post("/{shipment_id}/complete-unloading", response_model=ShipmentResponse)
async def complete_unloading(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    return _apply(db, _get_shipment(db, shipment_id), workflow.complete_unloading)


@router.post("/{shipment_id}/start-inspection", response_model=ShipmentResponse)
async def start_inspection(
    shipment_id: UUID,
    request: Optional[StartInspectionRequest] = None,
    db: Session = Depends(get_db)
):
    inspected_by = request.inspected_by if request else None
    return _apply(db, _get_shipment(db, shipment_id), workflow.start_inspection, inspected_by)


@router.post("/{shipment_id}/complete-inspection", response_model=ShipmentResponse)
async def complete_inspection(
    shipment_id: UUID,
    request: CompleteInspectionRequest,
    db: Session = Depends(get_db)
):
    shipment = _apply(
        db,
        _get_shipment(db, shipment_id),
        workflow.complete_inspection,
        request.outcome,
        notes=request.notes,
        inspected_by=request.inspected_by,
        hold_types=request.hold_types,
        failure_reasons=request.failure_reasons,
    )
    if shipment.latest_status == ShipmentStatus.INSPECTION_PASSED.value:
        email_service.notify_inspection_passed(shipment)
    elif shipment.latest_status == ShipmentStatus.INSPECTION_FAILED.value:
        email_service.notify_inspection_failed(shipment)
    return shipment


@router.post("/{shipment_id}/start-receiving", response_model=ShipmentResponse)
async def start_receiving(
    shipment_id: UUID,
    request: Optional[StartReceivingRequest] = None,
    db: Session = Depends(get_db)
):
    received_by = request.received_by if request else None
    return _apply(db, _get_shipment(db, shipment_id), workflow.start_receiving, received_by)


@router.post("/{shipment_id}/complete-receiving", response_model=ShipmentResponse)
async def complete_receiving(
    shipment_id: UUID,
    request: CompleteReceivingRequest,
    db: Session = Depends(get_db)
):
    return _apply(
        db,
        _get_shipment(db, shipment_id),
        workflow.complete_receiving,
        request.received_quantity,
        notes=request.notes,
        received_by=request.received_by,
        discrepancies=request.discrepancies,
    )


@router.post("/{shipment_id}/mark-stored", response_model=ShipmentResponse)
async def mark_stored(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    return _apply(db, _get_shipment(db, shipment_id), workflow.mark_stored)


@router.post("/{shipment_id}/reject", response_model=Union[RejectArchivedResponse, ShipmentResponse])
async def reject_shipment(
    shipment_id: UUID,
    request: RejectShipmentRequest,
    db: Session = Depends(get_db)
):
    """Return a failed shipment to the supplier, archiving it unless told otherwise."""
    shipment = _get_shipment(db, shipment_id)
    try:
        workflow.mark_rejected(shipment, request.rejection_reason, request.rejected_by)
    except workflow.WorkflowError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    if not request.archive_shipment:
        db.commit()
        db.refresh(shipment)
        email_service.notify_shipment_rejected(shipment, archived=False)
        return shipment

    file_name = manual_archive_file_name([shipment.order_ref])
    try:
        create_archive(db, file_name, [shipment_snapshot(shipment)])
        db.delete(shipment)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Reject-and-archive failed for shipment %s", shipment_id)
        raise
    email_service.notify_shipment_rejected(shipment, archived=True)
    logger.info("Shipment %s rejected and archived to %s", shipment_id, file_name)
    return {
        "success": True,
        "message": "Shipment rejected and archived",
        "archived": True,
        "shipment_id": shipment_id,
        "archive_file_name": file_name,
    }


@router.post("/{shipment_id}/amend-status", response_model=ShipmentResponse)
async def amend_status(
    shipment_id: UUID,
    db: Session = Depends(get_db)
):
    """Send the shipment back to in transit, clearing all workflow fields."""
    shipment = _get_shipment(db, shipment_id)
    try:
        workflow.amend_status(shipment)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(shipment)
    return shipment
