"""
Import costing API endpoints - cost estimates, exchange rates and exports.
"""
import logging
import smtplib
import time
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import FileResponse
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional
from uuid import UUID
from freight_console.db.database import get_db
from freight_console.models import CostEstimate, EstimateStatus, Shipment, Supplier
from freight_console.schemas.cost_estimate import (
    CostEstimateCreate,
    CostEstimateUpdate,
    CostEstimateInput,
    CostEstimateResponse,
    CostEstimateListResponse,
    SendEstimateEmailRequest,
    LinkShipmentRequest,
    ManualRateRequest,
    ExchangeRateResponse,
    SupplierCostRow,
)
from freight_console.services import email_service, exchange_rates
from freight_console.services.costing_calculations import (
    TOTAL_FIELDS,
    apply_charge_defaults,
    calculate_all_totals,
    calculate_product_allocations,
    estimate_inputs,
    products_for_storage,
    supplier_cost_summary,
)
from freight_console.services.costing_export import generate_estimate_pdf

logger = logging.getLogger(__name__)
router = APIRouter()

# Columns never copied between estimates or set from request bodies
_SYSTEM_COLUMNS = {"id", "created_at", "updated_at"}


def _get_estimate(db: Session, estimate_id: UUID) -> CostEstimate:
    estimate = db.query(CostEstimate).filter(CostEstimate.id == estimate_id).first()
    if not estimate:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Cost estimate {estimate_id} not found"
        )
    return estimate


def _payload_values(payload: CostEstimateInput, exclude_unset: bool = False) -> Dict[str, Any]:
    values = payload.model_dump(exclude_unset=exclude_unset, exclude={"products"})
    if "products" in payload.model_fields_set or not exclude_unset:
        values["products"] = [p.model_dump(mode="json") for p in payload.products or []]
    return values


def _resolve_supplier(db: Session, values: Dict[str, Any]) -> None:
    supplier_id = values.get("supplier_id")
    if not supplier_id:
        return
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Supplier {supplier_id} not found"
        )
    if not values.get("supplier_name"):
        values["supplier_name"] = supplier.name


def _apply_values(estimate: CostEstimate, values: Dict[str, Any]) -> None:
    """Write inputs onto the row and recompute every derived total."""
    try:
        if "products" in values:
            values = dict(values, products=products_for_storage(values["products"]))
        for field, value in values.items():
            if field in _SYSTEM_COLUMNS or field in TOTAL_FIELDS:
                continue
            setattr(estimate, field, value)
        totals = calculate_all_totals(estimate_inputs(estimate))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=[{"msg": str(e)}])
    for field, value in totals.items():
        setattr(estimate, field, value)


@router.get("", response_model=CostEstimateListResponse)
async def list_estimates(
    status_filter: Optional[str] = Query(None, alias="status"),
    supplier: Optional[str] = None,
    shipment_id: Optional[UUID] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db)
):
    query = db.query(CostEstimate)
    if status_filter:
        query = query.filter(CostEstimate.status == status_filter)
    if supplier:
        query = query.filter(CostEstimate.supplier_name.ilike(f"%{supplier}%"))
    if shipment_id:
        query = query.filter(CostEstimate.shipment_id == shipment_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            CostEstimate.reference_number.ilike(pattern),
            CostEstimate.supplier_name.ilike(pattern),
            CostEstimate.port_of_loading.ilike(pattern),
        ))
    total = query.count()
    estimates = (
        query.order_by(CostEstimate.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {"estimates": estimates, "total": total, "page": page, "limit": limit}


@router.post("", response_model=CostEstimateResponse, status_code=status.HTTP_201_CREATED)
async def create_estimate(
    payload: CostEstimateCreate,
    db: Session = Depends(get_db)
):
    values = apply_charge_defaults(_payload_values(payload))
    values["status"] = values.get("status") or EstimateStatus.DRAFT.value
    values["customs_duty_not_applicable"] = bool(values.get("customs_duty_not_applicable"))
    _resolve_supplier(db, values)

    estimate = CostEstimate()
    _apply_values(estimate, values)
    db.add(estimate)
    db.commit()
    db.refresh(estimate)
    logger.info(
        "Cost estimate created: id=%s ref=%s total=%s",
        estimate.id, estimate.reference_number, estimate.total_in_warehouse_cost_zar,
    )
    return estimate


@router.post("/calculate")
async def calculate_preview(payload: CostEstimateInput):
    """Totals and per-product landed costs for unsaved inputs."""
    values = apply_charge_defaults(_payload_values(payload))
    try:
        values["products"] = products_for_storage(values["products"])
        totals = calculate_all_totals(values)
        products = calculate_product_allocations(values, totals["total_shipping_cost_zar"])
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=[{"msg": str(e)}])
    return {"totals": totals, "products": products}


@router.get("/supplier-summary", response_model=List[SupplierCostRow])
async def get_supplier_summary(
    supplier: Optional[str] = None,
    product: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Cost per supplier for the costing chart."""
    estimates = [estimate_inputs(e) for e in db.query(CostEstimate).all()]
    return supplier_cost_summary(estimates, supplier, product)


@router.get("/exchange-rate/current", response_model=ExchangeRateResponse)
async def get_current_exchange_rate(
    currency: str = "USD",
    db: Session = Depends(get_db)
):
    try:
        return exchange_rates.get_current_rate(db, currency)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.api_route("/exchange-rate/refresh", methods=["GET", "POST"], response_model=ExchangeRateResponse)
async def refresh_exchange_rate(
    currency: str = "USD",
    db: Session = Depends(get_db)
):
    try:
        return exchange_rates.refresh_rate(db, currency)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/exchange-rate/manual", response_model=ExchangeRateResponse)
async def set_manual_exchange_rate(
    request: ManualRateRequest,
    db: Session = Depends(get_db)
):
    try:
        return exchange_rates.set_manual_rate(db, request.rate, request.currency)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{estimate_id}", response_model=CostEstimateResponse)
async def get_estimate(
    estimate_id: UUID,
    db: Session = Depends(get_db)
):
    return _get_estimate(db, estimate_id)


@router.put("/{estimate_id}", response_model=CostEstimateResponse)
async def update_estimate(
    estimate_id: UUID,
    payload: CostEstimateUpdate,
    db: Session = Depends(get_db)
):
    estimate = _get_estimate(db, estimate_id)
    values = _payload_values(payload, exclude_unset=True)
    if "customs_duty_not_applicable" in values:
        values["customs_duty_not_applicable"] = bool(values["customs_duty_not_applicable"])
    _resolve_supplier(db, values)
    _apply_values(estimate, values)
    db.commit()
    db.refresh(estimate)
    return estimate


@router.delete("/{estimate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_estimate(
    estimate_id: UUID,
    db: Session = Depends(get_db)
):
    estimate = _get_estimate(db, estimate_id)
    db.delete(estimate)
    db.commit()
    return None


@router.post("/{estimate_id}/duplicate", response_model=CostEstimateResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_estimate(
    estimate_id: UUID,
    db: Session = Depends(get_db)
):
    """Copy an estimate as a new draft."""
    source = _get_estimate(db, estimate_id)
    values = {k: v for k, v in estimate_inputs(source).items() if k not in _SYSTEM_COLUMNS}
    values["reference_number"] = f"{source.reference_number or 'ESTIMATE'}-COPY"
    values["status"] = EstimateStatus.DRAFT.value
    copy = CostEstimate(**values)
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


@router.get("/{estimate_id}/pdf")
async def download_estimate_pdf(
    estimate_id: UUID,
    db: Session = Depends(get_db)
):
    estimate = _get_estimate(db, estimate_id)
    file_path = generate_estimate_pdf(estimate)
    return FileResponse(
        file_path,
        media_type="application/pdf",
        filename=f"cost_estimate_{estimate.reference_number or estimate.id}.pdf"
    )


@router.post("/{estimate_id}/send-email")
async def send_estimate_email(
    estimate_id: UUID,
    request: SendEstimateEmailRequest,
    db: Session = Depends(get_db)
):
    """Render the estimate PDF and email it."""
    start_time = time.perf_counter()
    estimate = _get_estimate(db, estimate_id)
    file_path = generate_estimate_pdf(estimate)
    reference = estimate.reference_number or str(estimate.id)
    try:
        email_service.send_cost_estimate_email(request.to_email, reference, file_path, estimate.supplier_name)
    except email_service.EmailNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Email is not configured: {e}")
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Sending estimate %s to %s failed: %s", reference, request.to_email, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to send email: {e}")
    logger.info("Estimate %s emailed in %.2fs", reference, time.perf_counter() - start_time)
    return {"success": True, "message": f"Cost estimate sent to {request.to_email}"}


@router.post("/{estimate_id}/link-shipment", response_model=CostEstimateResponse)
async def link_shipment(
    estimate_id: UUID,
    request: LinkShipmentRequest,
    db: Session = Depends(get_db)
):
    estimate = _get_estimate(db, estimate_id)
    shipment = db.query(Shipment).filter(Shipment.id == request.shipment_id).first()
    if not shipment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shipment {request.shipment_id} not found"
        )
    estimate.shipment_id = shipment.id
    db.commit()
    db.refresh(estimate)
    return estimate


@router.delete("/{estimate_id}/link-shipment", response_model=CostEstimateResponse)
async def unlink_shipment(
    estimate_id: UUID,
    db: Session = Depends(get_db)
):
    estimate = _get_estimate(db, estimate_id)
    estimate.shipment_id = None
    db.commit()
    db.refresh(estimate)
    return estimate
