"""
Costing calculations for FCL import cost estimates.

Key business rules:
1. Foreign charges convert at the entered ROE: USD x roe_origin, EUR x roe_eur
2. Customs value per product = invoice value x applicable ROE (ZAR products use 1)
3. Duties = customs value x duty %, schedule 1 duty = customs value x schedule 1 %
4. Import VAT = 15% of (customs value + duties + schedule 1) - reported, never charged to clients
5. Agency fee = max(customs value x 3.5%, R1187)
6. Shipping cost is allocated to products by weight share; landed cost adds that product's duties
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, ROUND_FLOOR
from typing import Any, Dict, Iterable, List, Mapping, Optional

from freight_console.config.defaults_loader import get_costing_defaults


CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

LOCAL_CHARGE_FIELDS = [
    "local_cartage_cpt_klapmuts_20ton_zar",
    "local_cartage_cpt_klapmuts_28ton_zar",
    "transport_dbn_to_pretoria_20ft_zar",
    "transport_dbn_to_pretoria_40ft_zar",
    "transport_dbn_to_whs_zar",
    "unpack_reload_zar",
    "storage_zar",
    "outlying_depot_surcharge_zar",
    "local_cartage_dbn_whs_pretoria_opt_a_zar",
    "local_cartage_dbn_whs_pretoria_opt_b_zar",
    "local_cartage_dbn_whs_pretoria_6m_zar",
    "local_cartage_dbn_whs_pretoria_12m_zar",
    "transport_pe_coega_to_pretoria_zar",
]

DESTINATION_CHARGE_FIELDS = [
    "shipping_line_charges_zar",
    "cargo_dues_20ft_zar",
    "cargo_dues_40ft_zar",
    "cto_fee_zar",
    "port_health_inspection_zar",
    "daff_inspection_zar",
    "state_vet_cancellation_fee_zar",
    "jnb_turn_in_zar",
]

TOTAL_FIELDS = [
    "customs_value_zar",
    "origin_charge_usd_zar",
    "origin_charge_eur_zar",
    "total_origin_charges_zar",
    "total_ocean_freight_zar",
    "local_charges_subtotal_zar",
    "destination_charges_subtotal_zar",
    "total_duties_zar",
    "schedule1_duty_zar",
    "import_vat_zar",
    "agency_fee_zar",
    "customs_subtotal_zar",
    "total_shipping_cost_zar",
    "total_in_warehouse_cost_zar",
    "all_in_warehouse_cost_per_kg_zar",
]

SUPPORTED_CURRENCIES = ("USD", "EUR", "ZAR")


def to_decimal(value: Any) -> Decimal:
    """Convert a stored or validated value to Decimal; missing values count as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid numeric value: {value!r}")


def round_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_invoice_value(weight_kg: Any, rate_per_kg: Any) -> Decimal:
    return round_money(to_decimal(weight_kg) * to_decimal(rate_per_kg))


def convert_to_zar(amount: Any, roe: Any) -> Decimal:
    return to_decimal(amount) * to_decimal(roe)


def calculate_agency_fee(
    base: Any,
    percentage: Optional[Any] = None,
    minimum: Optional[Any] = None,
) -> Decimal:
    """
    Agency fee on the customs value.

    max(base x percentage / 100, minimum); zero when there is nothing to clear.
    """
    defaults = get_costing_defaults()
    base = to_decimal(base)
    if base <= 0:
        return ZERO
    pct = defaults["agency_fee_percentage"] if percentage in (None, "") else to_decimal(percentage)
    floor = defaults["agency_fee_min"] if minimum in (None, "") else to_decimal(minimum)
    return round_money(max(base * pct / HUNDRED, floor))


def normalize_products(products: Optional[Iterable[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Return product dicts with invoice_value re-derived from weight x rate.

    A product without a positive rate keeps the invoice value it was given.
    """
    normalized = []
    for product in products or []:
        item = dict(product)
        item["currency"] = (item.get("currency") or "USD").upper()
        rate = to_decimal(item.get("rate_per_kg"))
        if rate > 0:
            item["invoice_value"] = calculate_invoice_value(item.get("weight_kg"), rate)
        else:
            item["invoice_value"] = round_money(item.get("invoice_value"))
        normalized.append(item)
    return normalized


def products_for_storage(products: Optional[Iterable[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    """Normalized products with Decimals as strings, ready for the JSON column."""
    return [
        {key: str(value) if isinstance(value, Decimal) else value for key, value in product.items()}
        for product in normalize_products(products)
    ]


def product_currency_totals(products: Iterable[Mapping[str, Any]]) -> Dict[str, Decimal]:
    totals = {code: ZERO for code in SUPPORTED_CURRENCIES}
    for product in products or []:
        currency = (product.get("currency") or "USD").upper()
        if currency in totals:
            totals[currency] += to_decimal(product.get("invoice_value"))
    return totals


def customs_rates(data: Mapping[str, Any]) -> Dict[str, Decimal]:
    """ROE used for customs: roe_customs falls back to roe_origin, EUR falls back to the customs ROE."""
    customs_roe = to_decimal(data.get("roe_customs")) or to_decimal(data.get("roe_origin"))
    eur_roe = to_decimal(data.get("roe_eur")) or customs_roe
    return {"USD": customs_roe, "EUR": eur_roe, "ZAR": Decimal("1")}


def calculate_product_customs(
    product: Mapping[str, Any],
    rates: Mapping[str, Decimal],
    vat_rate_percent: Optional[Decimal] = None,
) -> Dict[str, Decimal]:
    if vat_rate_percent is None:
        vat_rate_percent = get_costing_defaults()["vat_rate_percent"]
    currency = (product.get("currency") or "USD").upper()
    roe = rates.get(currency, rates["USD"])
    customs_value = to_decimal(product.get("invoice_value")) * roe
    duties = customs_value * to_decimal(product.get("duty_percent")) / HUNDRED
    schedule1_duty = customs_value * to_decimal(product.get("duty_schedule1_percent")) / HUNDRED
    vat = (customs_value + duties + schedule1_duty) * vat_rate_percent / HUNDRED
    return {
        "roe": roe,
        "customs_value": customs_value,
        "duties": duties,
        "schedule1_duty": schedule1_duty,
        "vat": vat,
    }


def calculate_customs_totals(products: Iterable[Mapping[str, Any]], data: Mapping[str, Any]) -> Dict[str, Decimal]:
    rates = customs_rates(data)
    totals = {"customs_value": ZERO, "duties": ZERO, "schedule1_duty": ZERO, "vat": ZERO}
    for product in products:
        values = calculate_product_customs(product, rates)
        for key in totals:
            totals[key] += values[key]
    return totals


def allocate_by_weight(total: Any, weights: Iterable[Any]) -> List[Decimal]:
    """
    Split total across weights in proportion, to the cent.

    allocated_i = total x w_i / W, rounded by the largest remainder method so
    the shares always add back to the rounded total. Zero total weight
    allocates nothing.
    """
    weights = [max(to_decimal(w), ZERO) for w in weights]
    if not weights:
        return []
    total_weight = sum(weights, ZERO)
    if total_weight <= 0:
        return [ZERO for _ in weights]

    total_cents = int((round_money(total) / CENT).to_integral_value())
    exact = [Decimal(total_cents) * w / total_weight for w in weights]
    cents = [int(share.to_integral_value(rounding=ROUND_FLOOR)) for share in exact]
    leftover = total_cents - sum(cents)

    # Largest fractional part first; heavier product wins a tie
    order = sorted(range(len(weights)), key=lambda i: (-(exact[i] - cents[i]), -weights[i], i))
    for i in order[:leftover]:
        cents[i] += 1
    return [(Decimal(c) * CENT).quantize(CENT) for c in cents]


def calculate_product_allocations(
    data: Mapping[str, Any],
    total_shipping_cost: Optional[Any] = None,
) -> List[Dict[str, Any]]:
    """
    Per-product landed cost.

    Each product carries its weight share of the total shipping cost plus its own
    duties and schedule 1 duty. VAT is excluded.
    """
    products = normalize_products(data.get("products"))
    if total_shipping_cost is None:
        total_shipping_cost = calculate_all_totals(data)["total_shipping_cost_zar"]
    weights = [to_decimal(p.get("weight_kg")) for p in products]
    total_weight = sum(weights, ZERO)
    shares = allocate_by_weight(total_shipping_cost, weights)
    rates = customs_rates(data)

    allocations = []
    for product, weight, allocated in zip(products, weights, shares):
        customs = calculate_product_customs(product, rates)
        customs_cost = round_money(customs["duties"] + customs["schedule1_duty"])
        total_cost = allocated + customs_cost
        allocations.append({
            "name": product.get("name") or "",
            "hs_code": product.get("hs_code"),
            "currency": product["currency"],
            "weight_kg": weight,
            "weight_ratio": (weight / total_weight) if total_weight > 0 else ZERO,
            "invoice_value": product["invoice_value"],
            "customs_value_zar": round_money(customs["customs_value"]),
            "allocated_shipping_cost_zar": allocated,
            "customs_cost_zar": customs_cost,
            "total_cost_zar": total_cost,
            "cost_per_kg_zar": round_money(total_cost / weight) if weight > 0 else ZERO,
        })
    return allocations


def calculate_all_totals(data: Mapping[str, Any]) -> Dict[str, Decimal]:
    """
    Derive every costing total from raw estimate inputs.

    Pure function of the input mapping; routers call this on save and for the
    live preview so the numbers never drift between views.
    """
    roe_origin = to_decimal(data.get("roe_origin"))
    roe_eur = to_decimal(data.get("roe_eur"))
    products = normalize_products(data.get("products"))

    origin_usd_zar = convert_to_zar(data.get("origin_charge_usd"), roe_origin)
    origin_eur_zar = convert_to_zar(data.get("origin_charge_eur"), roe_eur)
    total_origin = origin_usd_zar + origin_eur_zar
    total_ocean = (
        convert_to_zar(data.get("ocean_freight_usd"), roe_origin)
        + convert_to_zar(data.get("ocean_freight_eur"), roe_eur)
    )
    local_subtotal = sum((to_decimal(data.get(f)) for f in LOCAL_CHARGE_FIELDS), ZERO)
    destination_subtotal = sum((to_decimal(data.get(f)) for f in DESTINATION_CHARGE_FIELDS), ZERO)

    customs = calculate_customs_totals(products, data)
    if products:
        customs_value = customs["customs_value"]
    else:
        customs_value = (
            convert_to_zar(data.get("invoice_value_usd"), roe_origin)
            + convert_to_zar(data.get("invoice_value_eur"), roe_eur)
        )

    if data.get("customs_duty_not_applicable"):
        duties = ZERO
        schedule1_duty = ZERO
    else:
        duties = customs["duties"]
        schedule1_duty = customs["schedule1_duty"]

    agency_fee = calculate_agency_fee(
        customs_value,
        data.get("agency_fee_percentage"),
        data.get("agency_fee_min"),
    )
    customs_subtotal = (
        round_money(duties)
        + round_money(schedule1_duty)
        + round_money(data.get("customs_declaration_zar"))
        + agency_fee
    )

    total_shipping = round_money(total_origin) + round_money(total_ocean) + round_money(local_subtotal) + round_money(destination_subtotal)
    total_in_warehouse = total_shipping + customs_subtotal

    gross_weight = to_decimal(data.get("total_gross_weight_kg"))
    if gross_weight <= 0:
        gross_weight = sum((to_decimal(p.get("weight_kg")) for p in products), ZERO)
    cost_per_kg = total_in_warehouse / gross_weight if gross_weight > 0 else ZERO

    return {
        "customs_value_zar": round_money(customs_value),
        "origin_charge_usd_zar": round_money(origin_usd_zar),
        "origin_charge_eur_zar": round_money(origin_eur_zar),
        "total_origin_charges_zar": round_money(total_origin),
        "total_ocean_freight_zar": round_money(total_ocean),
        "local_charges_subtotal_zar": round_money(local_subtotal),
        "destination_charges_subtotal_zar": round_money(destination_subtotal),
        "total_duties_zar": round_money(duties),
        "schedule1_duty_zar": round_money(schedule1_duty),
        "import_vat_zar": round_money(customs["vat"]),
        "agency_fee_zar": agency_fee,
        "customs_subtotal_zar": round_money(customs_subtotal),
        "total_shipping_cost_zar": round_money(total_shipping),
        "total_in_warehouse_cost_zar": round_money(total_in_warehouse),
        "all_in_warehouse_cost_per_kg_zar": round_money(cost_per_kg),
    }


def apply_charge_defaults(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill unset charge lines and customs constants from the rate sheet defaults."""
    defaults = get_costing_defaults()
    filled = dict(data)
    for field, amount in {**defaults["local_charges"], **defaults["destination_charges"]}.items():
        if filled.get(field) is None:
            filled[field] = amount
    for field in ("agency_fee_percentage", "agency_fee_min", "customs_declaration_zar"):
        if filled.get(field) is None:
            filled[field] = defaults[field]
    return filled


def estimate_inputs(estimate) -> Dict[str, Any]:
    """Column values of a CostEstimate row as a plain mapping."""
    return {column.name: getattr(estimate, column.name) for column in estimate.__table__.columns}


def supplier_cost_summary(
    estimates: Iterable[Mapping[str, Any]],
    supplier: Optional[str] = None,
    product: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Cost per supplier for the costing chart.

    With a product selected, each estimate contributes its in-warehouse cost
    scaled by that product's share of the container weight.
    """
    summary: Dict[str, Dict[str, Decimal]] = {}
    for est in estimates:
        name = est.get("supplier_name") or "Unknown"
        if supplier and name != supplier:
            continue
        products = normalize_products(est.get("products"))
        relevant = products if not product else [p for p in products if p.get("name") == product]
        if product and not relevant:
            continue

        totals = calculate_all_totals(est)
        total_weight = sum((to_decimal(p.get("weight_kg")) for p in products), ZERO)
        product_weight = sum((to_decimal(p.get("weight_kg")) for p in relevant), ZERO)
        product_value = sum((to_decimal(p.get("invoice_value")) for p in relevant), ZERO)
        ratio = product_weight / total_weight if product and total_weight > 0 else Decimal("1")

        entry = summary.setdefault(name, {
            "total_cost_zar": ZERO,
            "total_weight_kg": ZERO,
            "total_invoice_value": ZERO,
            "estimate_count": 0,
        })
        entry["total_cost_zar"] += totals["total_in_warehouse_cost_zar"] * ratio
        entry["total_weight_kg"] += product_weight or total_weight
        entry["total_invoice_value"] += product_value
        entry["estimate_count"] += 1

    rows = []
    for name, entry in summary.items():
        weight = entry["total_weight_kg"]
        rows.append({
            "supplier": name,
            "estimate_count": entry["estimate_count"],
            "total_cost_zar": round_money(entry["total_cost_zar"]),
            "total_weight_kg": round_money(weight),
            "total_invoice_value": round_money(entry["total_invoice_value"]),
            "cost_per_kg_zar": round_money(entry["total_cost_zar"] / weight) if weight > 0 else ZERO,
        })
    rows.sort(key=lambda r: r["total_cost_zar"], reverse=True)
    return rows
