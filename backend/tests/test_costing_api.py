from decimal import Decimal

import pytest

ESTIMATE = {
    "reference_number": "CE-1001",
    "supplier_name": "Acme Foods",
    "port_of_loading": "Shanghai",
    "roe_origin": "18.50",
    "roe_eur": "20.00",
    "ocean_freight_usd": "1000",
    "origin_charge_usd": "100",
    "products": [
        {"name": "Dextrose", "currency": "USD", "weight_kg": "1000", "rate_per_kg": "2", "duty_percent": "10", "_row": 1},
    ],
}


@pytest.fixture()
def estimate(client):
    response = client.post("/api/costing", json=ESTIMATE)
    assert response.status_code == 201
    return response.json()


def money(value):
    return Decimal(str(value))


def test_create_computes_totals(client, estimate):
    assert estimate["status"] == "draft"
    assert money(estimate["customs_value_zar"]) == Decimal("37000.00")
    assert money(estimate["total_ocean_freight_zar"]) == Decimal("18500.00")
    assert money(estimate["total_duties_zar"]) == Decimal("3700.00")
    assert "_row" not in estimate["products"][0]

    preview = client.post("/api/costing/calculate", json=ESTIMATE).json()
    assert money(preview["totals"]["total_in_warehouse_cost_zar"]) == money(estimate["total_in_warehouse_cost_zar"])
    assert preview["products"][0]["name"] == "Dextrose"


def test_stored_invoice_value_is_weight_times_rate(client):
    products = [{"name": "Dextrose", "weight_kg": "120.5", "rate_per_kg": "3.2", "invoice_value": "1"}]
    created = client.post("/api/costing", json={**ESTIMATE, "products": products}).json()
    assert money(created["products"][0]["invoice_value"]) == Decimal("385.60")

    fetched = client.get(f"/api/costing/{created['id']}").json()
    assert money(fetched["products"][0]["invoice_value"]) == Decimal("385.60")
    assert fetched["products"][0]["currency"] == "USD"

    preview = client.post("/api/costing/calculate", json={**ESTIMATE, "products": products}).json()
    assert money(preview["products"][0]["invoice_value"]) == Decimal("385.60")


def test_update_products_rederives_invoice_value(client, estimate):
    products = [{"name": "Dextrose", "weight_kg": "1000", "rate_per_kg": "0.3856", "invoice_value": "9999"}]
    updated = client.put(f"/api/costing/{estimate['id']}", json={"products": products}).json()
    assert money(updated["products"][0]["invoice_value"]) == Decimal("385.60")


def test_product_packaging_fields_are_kept(client):
    products = [{
        "name": "Citric Acid",
        "hs_code": "2918.14",
        "pack_size": "25kg",
        "pack_type": "Bags",
        "weight_kg": "500",
        "rate_per_kg": "1",
    }]
    created = client.post("/api/costing", json={**ESTIMATE, "products": products}).json()
    product = client.get(f"/api/costing/{created['id']}").json()["products"][0]
    assert (product["hs_code"], product["pack_size"], product["pack_type"]) == ("2918.14", "25kg", "Bags")

    preview = client.post("/api/costing/calculate", json={**ESTIMATE, "products": products}).json()
    assert preview["products"][0]["hs_code"] == "2918.14"


def test_create_rejects_non_numeric_amount(client):
    response = client.post("/api/costing", json={**ESTIMATE, "ocean_freight_usd": "a lot"})
    assert response.status_code == 422


def test_create_rejects_unknown_product_currency(client):
    products = [{"name": "Dextrose", "currency": "GBP", "weight_kg": "10"}]
    assert client.post("/api/costing", json={**ESTIMATE, "products": products}).status_code == 422


def test_blank_strings_are_treated_as_missing(client):
    response = client.post("/api/costing", json={**ESTIMATE, "roe_customs": "", "notes": ""})
    assert response.status_code == 201
    assert response.json()["roe_customs"] is None


def test_update_recomputes_totals(client, estimate):
    response = client.put(f"/api/costing/{estimate['id']}", json={"ocean_freight_usd": "2000"})
    assert response.status_code == 200
    updated = response.json()
    delta = money(updated["total_shipping_cost_zar"]) - money(estimate["total_shipping_cost_zar"])
    assert delta == Decimal("18500.00")
    assert updated["reference_number"] == "CE-1001"


def test_list_and_filter(client, estimate):
    client.post("/api/costing", json={**ESTIMATE, "reference_number": "CE-2002", "supplier_name": "Budget Imports", "status": "final"})

    assert client.get("/api/costing").json()["total"] == 2
    finals = client.get("/api/costing", params={"status": "final"}).json()
    assert [e["reference_number"] for e in finals["estimates"]] == ["CE-2002"]
    searched = client.get("/api/costing", params={"search": "ce-1001"}).json()
    assert searched["total"] == 1


def test_duplicate_is_a_new_draft(client, estimate):
    client.put(f"/api/costing/{estimate['id']}", json={"status": "final"})
    response = client.post(f"/api/costing/{estimate['id']}/duplicate")
    assert response.status_code == 201
    copy = response.json()
    assert copy["id"] != estimate["id"]
    assert copy["reference_number"] == "CE-1001-COPY"
    assert copy["status"] == "draft"
    assert copy["total_in_warehouse_cost_zar"] == estimate["total_in_warehouse_cost_zar"]


def test_delete_estimate(client, estimate):
    assert client.delete(f"/api/costing/{estimate['id']}").status_code == 204
    assert client.get(f"/api/costing/{estimate['id']}").status_code == 404


def test_supplier_resolved_from_id(client):
    supplier = client.post("/api/suppliers", json={"name": "Ningbo Chemicals"}).json()
    payload = {**ESTIMATE, "supplier_name": None, "supplier_id": supplier["id"]}
    response = client.post("/api/costing", json=payload)
    assert response.status_code == 201
    assert response.json()["supplier_name"] == "Ningbo Chemicals"


def test_supplier_summary(client, estimate):
    rows = client.get("/api/costing/supplier-summary").json()
    assert len(rows) == 1
    assert rows[0]["supplier"] == "Acme Foods"
    assert rows[0]["estimate_count"] == 1
    assert money(rows[0]["total_cost_zar"]) == money(estimate["total_in_warehouse_cost_zar"])


def test_link_and_unlink_shipment(client, estimate, make_shipment):
    shipment = make_shipment()
    linked = client.post(f"/api/costing/{estimate['id']}/link-shipment", json={"shipment_id": str(shipment.id)})
    assert linked.status_code == 200
    assert linked.json()["shipment_id"] == str(shipment.id)

    by_shipment = client.get("/api/costing", params={"shipment_id": str(shipment.id)}).json()
    assert by_shipment["total"] == 1

    unlinked = client.delete(f"/api/costing/{estimate['id']}/link-shipment").json()
    assert unlinked["shipment_id"] is None


def test_link_unknown_shipment_is_404(client, estimate):
    response = client.post(
        f"/api/costing/{estimate['id']}/link-shipment",
        json={"shipment_id": "00000000-0000-0000-0000-000000000000"},
    )
    assert response.status_code == 404


def test_pdf_download(client, estimate):
    response = client.get(f"/api/costing/{estimate['id']}/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_send_email_without_smtp_is_503(client, estimate):
    response = client.post(f"/api/costing/{estimate['id']}/send-email", json={"to_email": "buyer@example.com"})
    assert response.status_code == 503


def test_send_email_rejects_bad_address(client, estimate):
    response = client.post(f"/api/costing/{estimate['id']}/send-email", json={"to_email": "not-an-address"})
    assert response.status_code == 422


def test_duplicate_supplier_names_rejected(client):
    assert client.post("/api/suppliers", json={"name": "Acme Foods"}).status_code == 201
    assert client.post("/api/suppliers", json={"name": " Acme Foods "}).status_code == 400
    assert [s["name"] for s in client.get("/api/suppliers").json()] == ["Acme Foods"]
