import itertools
from decimal import Decimal

import pytest

from freight_console.services.costing_calculations import (
    allocate_by_weight,
    apply_charge_defaults,
    calculate_agency_fee,
    calculate_all_totals,
    calculate_invoice_value,
    calculate_product_allocations,
    convert_to_zar,
    normalize_products,
    products_for_storage,
    supplier_cost_summary,
    to_decimal,
)


def sample_estimate(**overrides):
    data = {
        "roe_origin": "18.50",
        "roe_eur": "20.00",
        "origin_charge_usd": "100",
        "origin_charge_eur": "50",
        "ocean_freight_usd": "1000",
        "transport_dbn_to_whs_zar": "5000",
        "cto_fee_zar": "1000",
        "customs_declaration_zar": "590",
        "agency_fee_percentage": "3.5",
        "agency_fee_min": "1187",
        "products": [
            {"name": "Dextrose", "currency": "USD", "weight_kg": "1000", "rate_per_kg": "2", "duty_percent": "10"},
        ],
    }
    data.update(overrides)
    return data


def test_invoice_value_is_weight_times_rate_rounded():
    assert calculate_invoice_value("1000", "0.3856") == Decimal("385.60")
    assert calculate_invoice_value("3", "0.335") == Decimal("1.01")
    assert calculate_invoice_value("120.5", "3.2") == Decimal("385.60")


def test_convert_to_zar():
    assert convert_to_zar("100", "18.50") == Decimal("1850.00")
    assert convert_to_zar(None, "18.50") == Decimal("0")


def test_to_decimal_rejects_non_numeric():
    assert to_decimal("") == Decimal("0")
    with pytest.raises(ValueError):
        to_decimal("abc")


def test_agency_fee_uses_floor_and_percentage():
    assert calculate_agency_fee("10000", "3.5", "1187") == Decimal("1187.00")
    assert calculate_agency_fee("100000", "3.5", "1187") == Decimal("3500.00")
    assert calculate_agency_fee("0", "3.5", "1187") == Decimal("0")


def test_allocation_by_weight_sums_to_total():
    assert allocate_by_weight("1000", ["400", "600"]) == [Decimal("400.00"), Decimal("600.00")]
    shares = allocate_by_weight("100", ["1", "1", "1"])
    assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(shares) == Decimal("100.00")


def test_allocation_matches_weight_ratio():
    assert allocate_by_weight("1000", ["40", "60"]) == [Decimal("400.00"), Decimal("600.00")]
    assert allocate_by_weight("27350", ["12000", "8000"]) == [Decimal("16410.00"), Decimal("10940.00")]


@pytest.mark.parametrize("order", list(itertools.permutations(range(3))))
def test_allocation_does_not_depend_on_product_order(order):
    weights = ["333.3", "123.45", "17"]
    expected = dict(zip(weights, allocate_by_weight("9876.54", weights)))
    reordered = [weights[i] for i in order]
    shares = allocate_by_weight("9876.54", reordered)
    assert shares == [expected[w] for w in reordered]
    assert sum(shares) == Decimal("9876.54")


def test_allocation_tie_goes_to_first_listed_product():
    assert allocate_by_weight("0.05", ["1", "1"]) == [Decimal("0.03"), Decimal("0.02")]
    assert allocate_by_weight("10", ["1", "1", "1"]) == [Decimal("3.34"), Decimal("3.33"), Decimal("3.33")]


def test_allocation_with_zero_weight_allocates_nothing():
    assert allocate_by_weight("500", ["0", "0"]) == [Decimal("0"), Decimal("0")]


def test_normalize_products_keeps_invoice_value_without_rate():
    products = normalize_products([
        {"name": "A", "currency": "eur", "weight_kg": "10", "rate_per_kg": "0", "invoice_value": "250"},
        {"name": "B", "weight_kg": "10", "rate_per_kg": "1.5"},
    ])
    assert products[0]["currency"] == "EUR"
    assert products[0]["invoice_value"] == Decimal("250.00")
    assert products[1]["currency"] == "USD"
    assert products[1]["invoice_value"] == Decimal("15.00")


def test_products_for_storage_is_json_ready():
    stored = products_for_storage([{"name": "A", "weight_kg": Decimal("120.5"), "rate_per_kg": "3.2", "invoice_value": "1"}])
    assert stored == [{"name": "A", "weight_kg": "120.5", "rate_per_kg": "3.2", "invoice_value": "385.60", "currency": "USD"}]


def test_calculate_all_totals():
    totals = calculate_all_totals(sample_estimate())
    assert totals["origin_charge_usd_zar"] == Decimal("1850.00")
    assert totals["origin_charge_eur_zar"] == Decimal("1000.00")
    assert totals["total_origin_charges_zar"] == Decimal("2850.00")
    assert totals["total_ocean_freight_zar"] == Decimal("18500.00")
    assert totals["local_charges_subtotal_zar"] == Decimal("5000.00")
    assert totals["destination_charges_subtotal_zar"] == Decimal("1000.00")
    assert totals["customs_value_zar"] == Decimal("37000.00")
    assert totals["total_duties_zar"] == Decimal("3700.00")
    assert totals["import_vat_zar"] == Decimal("6105.00")
    assert totals["agency_fee_zar"] == Decimal("1295.00")
    assert totals["customs_subtotal_zar"] == Decimal("5585.00")
    assert totals["total_shipping_cost_zar"] == Decimal("27350.00")
    assert totals["total_in_warehouse_cost_zar"] == Decimal("32935.00")
    assert totals["all_in_warehouse_cost_per_kg_zar"] == Decimal("32.94")


def test_vat_never_reaches_client_totals():
    totals = calculate_all_totals(sample_estimate())
    expected = totals["total_shipping_cost_zar"] + totals["customs_subtotal_zar"]
    assert totals["total_in_warehouse_cost_zar"] == expected


def test_duty_not_applicable_zeroes_duties():
    totals = calculate_all_totals(sample_estimate(customs_duty_not_applicable=True))
    assert totals["total_duties_zar"] == Decimal("0.00")
    assert totals["customs_subtotal_zar"] == Decimal("1885.00")


def test_customs_value_without_products_uses_invoice_values():
    totals = calculate_all_totals(sample_estimate(products=[], invoice_value_usd="1000", invoice_value_eur="100"))
    assert totals["customs_value_zar"] == Decimal("20500.00")


def test_customs_roe_overrides_origin_roe():
    totals = calculate_all_totals(sample_estimate(roe_customs="19"))
    assert totals["customs_value_zar"] == Decimal("38000.00")


def test_product_allocations_add_own_duties():
    data = {
        "roe_origin": "10",
        "ocean_freight_usd": "100",
        "products": [
            {"name": "A", "currency": "USD", "weight_kg": "400", "rate_per_kg": "1", "duty_percent": "0"},
            {"name": "B", "currency": "USD", "weight_kg": "600", "rate_per_kg": "1", "duty_percent": "10"},
        ],
    }
    allocations = calculate_product_allocations(data)
    assert [a["allocated_shipping_cost_zar"] for a in allocations] == [Decimal("400.00"), Decimal("600.00")]
    assert allocations[0]["total_cost_zar"] == Decimal("400.00")
    assert allocations[1]["customs_cost_zar"] == Decimal("600.00")
    assert allocations[1]["total_cost_zar"] == Decimal("1200.00")
    assert allocations[1]["cost_per_kg_zar"] == Decimal("2.00")


def test_apply_charge_defaults_only_fills_missing_values():
    filled = apply_charge_defaults({"customs_declaration_zar": Decimal("700")})
    assert filled["customs_declaration_zar"] == Decimal("700")
    assert filled["agency_fee_min"] == Decimal("1187")


def test_supplier_cost_summary_sorted_by_cost():
    estimates = [
        dict(sample_estimate(), supplier_name="Acme Foods"),
        dict(sample_estimate(ocean_freight_usd="0"), supplier_name="Budget Imports"),
    ]
    rows = supplier_cost_summary(estimates)
    assert [r["supplier"] for r in rows] == ["Acme Foods", "Budget Imports"]
    assert rows[0]["estimate_count"] == 1
    assert rows[0]["total_cost_zar"] == Decimal("32935.00")
    assert rows[0]["cost_per_kg_zar"] == Decimal("32.94")


def test_supplier_cost_summary_filters_by_product():
    estimate = dict(sample_estimate(), supplier_name="Acme Foods")
    assert supplier_cost_summary([estimate], product="Unknown") == []
    rows = supplier_cost_summary([estimate], product="Dextrose")
    assert rows[0]["total_weight_kg"] == Decimal("1000.00")
