"""
Cost estimate schemas.

Input rules shared by create, update and the calculate preview:
- empty strings are null
- keys starting with "_" are display-only and dropped
- numeric fields must be numeric; anything else is a 422 naming the field
"""
from pydantic import BaseModel, field_validator, model_validator
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict, Any


class ProductLine(BaseModel):
    name: Optional[str] = None
    currency: Optional[str] = "USD"
    weight_kg: Optional[Decimal] = None
    rate_per_kg: Optional[Decimal] = None
    invoice_value: Optional[Decimal] = None
    duty_percent: Optional[Decimal] = None
    duty_schedule1_percent: Optional[Decimal] = None
    hs_code: Optional[str] = None
    pack_size: Optional[str] = None
    pack_type: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        return _clean_payload(values)

    @field_validator("currency")
    @classmethod
    def known_currency(cls, value: Optional[str]) -> str:
        value = (value or "USD").upper()
        if value not in ("USD", "EUR", "ZAR"):
            raise ValueError("currency must be USD, EUR or ZAR")
        return value


def _clean_payload(values):
    if not isinstance(values, dict):
        return values
    cleaned = {}
    for key, value in values.items():
        if isinstance(key, str) and key.startswith("_"):
            continue
        if isinstance(value, str) and not value.strip():
            value = None
        cleaned[key] = value
    return cleaned


class CostEstimateInput(BaseModel):
    reference_number: Optional[str] = None
    shipment_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    supplier_name: Optional[str] = None
    status: Optional[str] = None

    country_of_origin: Optional[str] = None
    port_of_loading: Optional[str] = None
    country_of_destination: Optional[str] = None
    port_of_discharge: Optional[str] = None
    shipping_line: Optional[str] = None
    routing: Optional[str] = None
    frequency: Optional[str] = None
    transit_time_days: Optional[int] = None
    inco_terms: Optional[str] = None
    inco_term_place: Optional[str] = None
    container_type: Optional[str] = None
    quantity: Optional[int] = None
    validity_date: Optional[date] = None
    costing_date: Optional[date] = None
    payment_terms: Optional[str] = None

    roe_origin: Optional[Decimal] = None
    roe_eur: Optional[Decimal] = None
    roe_customs: Optional[Decimal] = None

    ocean_freight_usd: Optional[Decimal] = None
    ocean_freight_eur: Optional[Decimal] = None
    origin_charge_usd: Optional[Decimal] = None
    origin_charge_eur: Optional[Decimal] = None
    invoice_value_usd: Optional[Decimal] = None
    invoice_value_eur: Optional[Decimal] = None

    local_cartage_cpt_klapmuts_20ton_zar: Optional[Decimal] = None
    local_cartage_cpt_klapmuts_28ton_zar: Optional[Decimal] = None
    transport_dbn_to_pretoria_20ft_zar: Optional[Decimal] = None
    transport_dbn_to_pretoria_40ft_zar: Optional[Decimal] = None
    transport_dbn_to_whs_zar: Optional[Decimal] = None
    unpack_reload_zar: Optional[Decimal] = None
    storage_zar: Optional[Decimal] = None
    storage_days: Optional[int] = None
    outlying_depot_surcharge_zar: Optional[Decimal] = None
    local_cartage_dbn_whs_pretoria_opt_a_zar: Optional[Decimal] = None
    local_cartage_dbn_whs_pretoria_opt_b_zar: Optional[Decimal] = None
    local_cartage_dbn_whs_pretoria_6m_zar: Optional[Decimal] = None
    local_cartage_dbn_whs_pretoria_12m_zar: Optional[Decimal] = None
    transport_pe_coega_to_pretoria_zar: Optional[Decimal] = None

    shipping_line_charges_zar: Optional[Decimal] = None
    cargo_dues_20ft_zar: Optional[Decimal] = None
    cargo_dues_40ft_zar: Optional[Decimal] = None
    cto_fee_zar: Optional[Decimal] = None
    port_health_inspection_zar: Optional[Decimal] = None
    daff_inspection_zar: Optional[Decimal] = None
    state_vet_cancellation_fee_zar: Optional[Decimal] = None
    jnb_turn_in_zar: Optional[Decimal] = None

    products: Optional[List[ProductLine]] = None
    total_gross_weight_kg: Optional[Decimal] = None

    customs_declaration_zar: Optional[Decimal] = None
    customs_duty_not_applicable: Optional[bool] = None
    agency_fee_percentage: Optional[Decimal] = None
    agency_fee_min: Optional[Decimal] = None

    notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        return _clean_payload(values)

    @field_validator("status")
    @classmethod
    def known_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ("draft", "final", "archived"):
            raise ValueError("status must be draft, final or archived")
        return value


class CostEstimateCreate(CostEstimateInput):
    pass


class CostEstimateUpdate(CostEstimateInput):
    pass


class CostEstimateResponse(BaseModel):
    id: UUID
    reference_number: Optional[str] = None
    shipment_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    supplier_name: Optional[str] = None
    status: str
    costing_date: Optional[date] = None
    validity_date: Optional[date] = None
    container_type: Optional[str] = None
    roe_origin: Optional[Decimal] = None
    roe_eur: Optional[Decimal] = None
    roe_customs: Optional[Decimal] = None
    products: Optional[List[Dict[str, Any]]] = None
    total_gross_weight_kg: Optional[Decimal] = None
    customs_value_zar: Optional[Decimal] = None
    total_origin_charges_zar: Optional[Decimal] = None
    total_ocean_freight_zar: Optional[Decimal] = None
    local_charges_subtotal_zar: Optional[Decimal] = None
    destination_charges_subtotal_zar: Optional[Decimal] = None
    total_duties_zar: Optional[Decimal] = None
    schedule1_duty_zar: Optional[Decimal] = None
    import_vat_zar: Optional[Decimal] = None
    agency_fee_zar: Optional[Decimal] = None
    customs_subtotal_zar: Optional[Decimal] = None
    total_shipping_cost_zar: Optional[Decimal] = None
    total_in_warehouse_cost_zar: Optional[Decimal] = None
    all_in_warehouse_cost_per_kg_zar: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CostEstimateListResponse(BaseModel):
    estimates: List[CostEstimateResponse]
    total: int
    page: int
    limit: int


class SendEstimateEmailRequest(BaseModel):
    to_email: str

    @field_validator("to_email")
    @classmethod
    def looks_like_email(cls, value: str) -> str:
        value = value.strip()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("A valid email address is required")
        return value


class LinkShipmentRequest(BaseModel):
    shipment_id: UUID


class ManualRateRequest(BaseModel):
    rate: Decimal
    currency: str = "USD"


class ExchangeRateResponse(BaseModel):
    currency_pair: str
    rate: Decimal
    source: Optional[str] = None
    fetched_at: datetime
    is_stale: bool = False
    is_fallback: bool = False


class SupplierCostRow(BaseModel):
    supplier: str
    estimate_count: int
    total_cost_zar: Decimal
    total_weight_kg: Decimal
    total_invoice_value: Decimal
    cost_per_kg_zar: Decimal
