"""
PDF export of cost estimates.
"""
from decimal import Decimal
from pathlib import Path
from typing import Any, List, Tuple
import tempfile
import time
import logging
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from freight_console.models import CostEstimate
from freight_console.services.costing_calculations import (
    DESTINATION_CHARGE_FIELDS,
    LOCAL_CHARGE_FIELDS,
    calculate_all_totals,
    calculate_product_allocations,
    estimate_inputs,
    to_decimal,
)
from freight_console.services.archive_service import sanitize_for_filename

logger = logging.getLogger(__name__)

SHIPMENT_DETAIL_FIELDS = [
    ("country_of_origin", "Country of Origin"),
    ("port_of_loading", "Port of Loading"),
    ("country_of_destination", "Country of Destination"),
    ("port_of_discharge", "Port of Discharge"),
    ("shipping_line", "Shipping Line"),
    ("routing", "Routing"),
    ("frequency", "Frequency"),
    ("transit_time_days", "Transit Time (days)"),
    ("inco_terms", "Incoterms"),
    ("inco_term_place", "Incoterm Place"),
    ("container_type", "Container Type"),
    ("quantity", "Containers"),
    ("validity_date", "Valid Until"),
    ("payment_terms", "Payment Terms"),
]

TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f3a5f")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 8),
    ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
    ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#c8c8c8")),
    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f3f6f9")]),
])


def format_zar(value: Any) -> str:
    return f"R {to_decimal(value):,.2f}"


def field_label(field: str) -> str:
    label = field[:-4] if field.endswith("_zar") else field
    return label.replace("_", " ").title().replace("Dbn", "DBN").replace("Cpt", "CPT").replace("Whs", "WHS")


def non_zero_rows(rows: List[Tuple[str, Any]]) -> List[List[str]]:
    """Drop rows whose value is zero or missing; format the rest as ZAR."""
    return [[label, format_zar(value)] for label, value in rows if to_decimal(value) != 0]


def _section(title: str, rows: List[List[str]], styles) -> list:
    if not rows:
        return []
    table = Table([["Item", "Amount"]] + rows, colWidths=[4.2 * inch, 1.8 * inch])
    table.setStyle(TABLE_STYLE)
    return [Paragraph(title, styles["Heading3"]), table, Spacer(1, 0.15 * inch)]


def generate_estimate_pdf(estimate: CostEstimate) -> str:
    """
    Render a cost estimate to PDF:
    - header with reference, date, supplier and ROEs
    - shipment details and products
    - origin, ocean, local, destination and customs sections
    - totals
    """
    start_time = time.perf_counter()
    data = estimate_inputs(estimate)
    totals = calculate_all_totals(data)
    reference = estimate.reference_number or str(estimate.id)
    file_path = Path(tempfile.gettempdir()) / f"cost_estimate_{sanitize_for_filename(reference) or estimate.id}.pdf"

    doc = SimpleDocTemplate(str(file_path), pagesize=A4)
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "EstimateTitle",
        parent=styles["Heading1"],
        fontSize=16,
        textColor=colors.HexColor("#1a1a1a"),
        spaceAfter=12,
    )
    story = [Paragraph(f"Import Cost Estimate: {escape(reference)}", title_style)]

    costing_date = estimate.costing_date.isoformat() if estimate.costing_date else ""
    header = [
        f"Date: {costing_date}",
        f"Supplier: {escape(estimate.supplier_name or '')}",
        f"ROE USD/ZAR: {to_decimal(estimate.roe_origin):.4f} | ROE EUR/ZAR: {to_decimal(estimate.roe_eur):.4f}"
        f" | Customs ROE: {to_decimal(estimate.roe_customs or estimate.roe_origin):.4f}",
    ]
    for line in header:
        story.append(Paragraph(line, styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))

    details = [[label, str(data[field])] for field, label in SHIPMENT_DETAIL_FIELDS if data.get(field) not in (None, "")]
    if details:
        table = Table(details, colWidths=[2.2 * inch, 3.8 * inch])
        table.setStyle(TableStyle([
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#c8c8c8")),
        ]))
        story += [Paragraph("Shipment Details", styles["Heading3"]), table, Spacer(1, 0.15 * inch)]

    allocations = calculate_product_allocations(data, totals["total_shipping_cost_zar"])
    if allocations:
        rows = [["Product", "Currency", "Weight (kg)", "Invoice", "Landed Cost", "Cost/kg"]]
        for item in allocations:
            rows.append([
                item["name"],
                item["currency"],
                f"{item['weight_kg']:,.2f}",
                f"{item['invoice_value']:,.2f}",
                format_zar(item["total_cost_zar"]),
                format_zar(item["cost_per_kg_zar"]),
            ])
        table = Table(rows, repeatRows=1)
        table.setStyle(TABLE_STYLE)
        story += [Paragraph("Products", styles["Heading3"]), table, Spacer(1, 0.15 * inch)]

    story += _section("Origin Charges", non_zero_rows([
        ("Origin Charges (USD)", totals["origin_charge_usd_zar"]),
        ("Origin Charges (EUR)", totals["origin_charge_eur_zar"]),
    ]), styles)
    story += _section("Ocean Freight", non_zero_rows([
        ("Ocean Freight", totals["total_ocean_freight_zar"]),
    ]), styles)
    story += _section("Local Charges", non_zero_rows(
        [(field_label(f), data.get(f)) for f in LOCAL_CHARGE_FIELDS]
    ), styles)
    story += _section("Destination Charges", non_zero_rows(
        [(field_label(f), data.get(f)) for f in DESTINATION_CHARGE_FIELDS]
    ), styles)
    story += _section("Customs", non_zero_rows([
        ("Customs Value", totals["customs_value_zar"]),
        ("Duties", totals["total_duties_zar"]),
        ("Schedule 1 Duty", totals["schedule1_duty_zar"]),
        ("Customs Declaration", data.get("customs_declaration_zar")),
        ("Agency Fee", totals["agency_fee_zar"]),
    ]), styles)
    story += _section("Totals", non_zero_rows([
        ("Total Shipping Cost", totals["total_shipping_cost_zar"]),
        ("Customs Subtotal", totals["customs_subtotal_zar"]),
        ("Total In-Warehouse Cost", totals["total_in_warehouse_cost_zar"]),
        ("All-in Cost per kg", totals["all_in_warehouse_cost_per_kg_zar"]),
    ]), styles)

    if totals["import_vat_zar"] > Decimal("0"):
        story.append(Paragraph(
            f"Import VAT of {format_zar(totals['import_vat_zar'])} is recoverable and excluded from the totals.",
            styles["Italic"],
        ))
    if estimate.notes:
        story += [Spacer(1, 0.1 * inch), Paragraph(f"Notes: {escape(estimate.notes)}", styles["Normal"])]

    doc.build(story)
    duration = round(time.perf_counter() - start_time, 3)
    logger.info("PDF estimate generated for %s in %.2fs", reference, duration)
    return str(file_path)
