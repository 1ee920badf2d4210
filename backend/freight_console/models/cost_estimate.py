"""
Cost estimate model - FCL import costing inputs and derived totals.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Integer, Date, Text, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from freight_console.db.database import Base
from freight_console.models.shipment import JSONType


class EstimateStatus(str, enum.Enum):
    DRAFT = "draft"
    FINAL = "final"
    ARCHIVED = "archived"


class CostEstimate(Base):
    __tablename__ = "cost_estimates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reference_number = Column(String, nullable=True, index=True)
    shipment_id = Column(UUID(as_uuid=True), ForeignKey("shipments.id", ondelete="SET NULL"), nullable=True)
    supplier_id = Column(UUID(as_uuid=True), ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)
    supplier_name = Column(String, nullable=True)
    status = Column(String, nullable=False, default=EstimateStatus.DRAFT.value)

    # Shipment details
    country_of_origin = Column(String, nullable=True)
    port_of_loading = Column(String, nullable=True)
    country_of_destination = Column(String, nullable=True, default="South Africa")
    port_of_discharge = Column(String, nullable=True)
    shipping_line = Column(String, nullable=True)
    routing = Column(String, nullable=True)
    frequency = Column(String, nullable=True)
    transit_time_days = Column(Integer, nullable=True)
    inco_terms = Column(String, nullable=True)
    inco_term_place = Column(String, nullable=True)
    container_type = Column(String, nullable=True)
    quantity = Column(Integer, nullable=True, default=1)
    validity_date = Column(Date, nullable=True)
    costing_date = Column(Date, nullable=True)
    payment_terms = Column(String, nullable=True)

    # Rates of exchange
    roe_origin = Column(Numeric(12, 4), nullable=True)  # USD/ZAR
    roe_eur = Column(Numeric(12, 4), nullable=True)  # EUR/ZAR
    roe_customs = Column(Numeric(12, 4), nullable=True)

    # Foreign currency charges
    ocean_freight_usd = Column(Numeric(14, 2), nullable=True)
    ocean_freight_eur = Column(Numeric(14, 2), nullable=True)
    origin_charge_usd = Column(Numeric(14, 2), nullable=True)
    origin_charge_eur = Column(Numeric(14, 2), nullable=True)
    invoice_value_usd = Column(Numeric(14, 2), nullable=True)
    invoice_value_eur = Column(Numeric(14, 2), nullable=True)

    # Local charges (transport/cartage)
    local_cartage_cpt_klapmuts_20ton_zar = Column(Numeric(14, 2), nullable=True)
    local_cartage_cpt_klapmuts_28ton_zar = Column(Numeric(14, 2), nullable=True)
    transport_dbn_to_pretoria_20ft_zar = Column(Numeric(14, 2), nullable=True)
    transport_dbn_to_pretoria_40ft_zar = Column(Numeric(14, 2), nullable=True)
    transport_dbn_to_whs_zar = Column(Numeric(14, 2), nullable=True)
    unpack_reload_zar = Column(Numeric(14, 2), nullable=True)
    storage_zar = Column(Numeric(14, 2), nullable=True)
    storage_days = Column(Integer, nullable=True)
    outlying_depot_surcharge_zar = Column(Numeric(14, 2), nullable=True)
    local_cartage_dbn_whs_pretoria_opt_a_zar = Column(Numeric(14, 2), nullable=True)
    local_cartage_dbn_whs_pretoria_opt_b_zar = Column(Numeric(14, 2), nullable=True)
    local_cartage_dbn_whs_pretoria_6m_zar = Column(Numeric(14, 2), nullable=True)
    local_cartage_dbn_whs_pretoria_12m_zar = Column(Numeric(14, 2), nullable=True)
    transport_pe_coega_to_pretoria_zar = Column(Numeric(14, 2), nullable=True)

    # Destination charges (port/shipping)
    shipping_line_charges_zar = Column(Numeric(14, 2), nullable=True)
    cargo_dues_20ft_zar = Column(Numeric(14, 2), nullable=True)
    cargo_dues_40ft_zar = Column(Numeric(14, 2), nullable=True)
    cto_fee_zar = Column(Numeric(14, 2), nullable=True)
    port_health_inspection_zar = Column(Numeric(14, 2), nullable=True)
    daff_inspection_zar = Column(Numeric(14, 2), nullable=True)
    state_vet_cancellation_fee_zar = Column(Numeric(14, 2), nullable=True)
    jnb_turn_in_zar = Column(Numeric(14, 2), nullable=True)

    # Products in the container
    products = Column(JSONType, nullable=True)
    total_gross_weight_kg = Column(Numeric(14, 2), nullable=True)

    # Customs inputs
    customs_declaration_zar = Column(Numeric(14, 2), nullable=True)
    customs_duty_not_applicable = Column(Boolean, nullable=False, default=False)
    agency_fee_percentage = Column(Numeric(5, 2), nullable=True)
    agency_fee_min = Column(Numeric(14, 2), nullable=True)

    # Derived totals (recomputed on every save)
    customs_value_zar = Column(Numeric(14, 2), nullable=True)
    origin_charge_usd_zar = Column(Numeric(14, 2), nullable=True)
    origin_charge_eur_zar = Column(Numeric(14, 2), nullable=True)
    total_origin_charges_zar = Column(Numeric(14, 2), nullable=True)
    total_ocean_freight_zar = Column(Numeric(14, 2), nullable=True)
    local_charges_subtotal_zar = Column(Numeric(14, 2), nullable=True)
    destination_charges_subtotal_zar = Column(Numeric(14, 2), nullable=True)
    total_duties_zar = Column(Numeric(14, 2), nullable=True)
    schedule1_duty_zar = Column(Numeric(14, 2), nullable=True)
    import_vat_zar = Column(Numeric(14, 2), nullable=True)  # informational, never charged to clients
    agency_fee_zar = Column(Numeric(14, 2), nullable=True)
    customs_subtotal_zar = Column(Numeric(14, 2), nullable=True)
    total_shipping_cost_zar = Column(Numeric(14, 2), nullable=True)
    total_in_warehouse_cost_zar = Column(Numeric(14, 2), nullable=True)
    all_in_warehouse_cost_per_kg_zar = Column(Numeric(14, 2), nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    supplier = relationship("Supplier", back_populates="cost_estimates")
    shipment = relationship("Shipment")
