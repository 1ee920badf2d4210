import uuid
from datetime import datetime, timedelta

from sqlalchemy import event

from freight_console.models import Archive, Shipment, ShipmentStatus


def test_create_and_fetch_shipment(client):
    response = client.post("/api/shipments", json={
        "supplier": "Acme Foods",
        "order_ref": "PO900",
        "product_name": "Citric Acid",
        "final_pod": "",
    })
    assert response.status_code == 201
    data = response.json()
    assert data["latest_status"] == "planned_seafreight"
    assert data["final_pod"] is None

    fetched = client.get(f"/api/shipments/{data['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["order_ref"] == "PO900"


def test_create_requires_supplier(client):
    response = client.post("/api/shipments", json={"supplier": "   "})
    assert response.status_code in (400, 422)


def test_update_and_delete_shipment(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.IN_TRANSIT_SEAWAY)
    response = client.put(f"/api/shipments/{shipment.id}", json={"vessel_name": "MSC Aurora"})
    assert response.status_code == 200
    assert response.json()["vessel_name"] == "MSC Aurora"
    assert response.json()["supplier"] == "Acme Foods"

    assert client.delete(f"/api/shipments/{shipment.id}").status_code == 204
    assert client.get(f"/api/shipments/{shipment.id}").status_code == 404


def test_unknown_shipment_is_404(client):
    assert client.get(f"/api/shipments/{uuid.uuid4()}").status_code == 404
    assert client.post(f"/api/shipments/{uuid.uuid4()}/start-unloading").status_code == 404


def test_list_filters_and_searches(client, make_shipment):
    make_shipment(order_ref="PO111", status=ShipmentStatus.ARCHIVED)
    make_shipment(order_ref="PO222", status=ShipmentStatus.ARCHIVED, supplier="Budget Imports")
    make_shipment(order_ref="PO333", status=ShipmentStatus.IN_TRANSIT_SEAWAY)

    archived = client.get("/api/shipments", params={"status": "archived"}).json()
    assert archived["total"] == 2
    assert {s["orderRef"] for s in archived["shipments"]} == {"PO111", "PO222"}

    searched = client.get("/api/shipments", params={"status": "archived", "search": "budget"}).json()
    assert searched["total"] == 1
    assert searched["shipments"][0]["supplier"] == "Budget Imports"

    paged = client.get("/api/shipments", params={"limit": 1, "page": 2}).json()
    assert paged["total"] == 3
    assert len(paged["shipments"]) == 1


def test_list_pages_in_the_database(client, db, make_shipment):
    start = datetime(2025, 1, 1)
    for i in range(5):
        make_shipment(order_ref=f"PO{i}", status=ShipmentStatus.ARCHIVED, updated_at=start + timedelta(days=i))
    make_shipment(order_ref="PO_X", status=ShipmentStatus.ARCHIVED, receiving_warehouse="KLM 100% Bay")

    statements = []
    listener = lambda conn, cursor, statement, *args: statements.append(statement)
    event.listen(db.get_bind(), "before_cursor_execute", listener)
    try:
        page = client.get("/api/shipments", params={"status": "archived", "limit": 2, "page": 2}).json()
    finally:
        event.remove(db.get_bind(), "before_cursor_execute", listener)

    assert page["total"] == 6
    assert [s["orderRef"] for s in page["shipments"]] == ["PO3", "PO2"]
    assert any("LIMIT" in s and "OFFSET" in s for s in statements)

    by_warehouse = client.get("/api/shipments", params={"search": "100%"}).json()
    assert [s["orderRef"] for s in by_warehouse["shipments"]] == ["PO_X"]
    assert client.get("/api/shipments", params={"search": "PO_"}).json()["total"] == 1


def test_post_arrival_list_includes_actions(client, make_shipment):
    make_shipment(status=ShipmentStatus.ARRIVED_KLM)
    make_shipment(order_ref="PO999", status=ShipmentStatus.IN_TRANSIT_SEAWAY)
    make_shipment(order_ref="PO998", status=ShipmentStatus.STORED)

    rows = client.get("/api/shipments/post-arrival").json()
    assert len(rows) == 1
    assert [a["label"] for a in rows[0]["available_actions"]] == ["Start Unloading", "Amend Status"]
    assert rows[0]["progress"]["current_step"] == 2


def test_workflow_state(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.INSPECTION_PASSED)
    state = client.get(f"/api/shipments/{shipment.id}/workflow").json()
    assert state["status"] == "inspection_passed"
    assert state["progress"]["label"] == "Inspection Passed"
    assert state["available_actions"][0]["key"] == "start-receiving"


def test_full_workflow_through_api(client, make_shipment):
    shipment = make_shipment()
    base = f"/api/shipments/{shipment.id}"

    assert client.post(f"{base}/start-unloading").json()["latest_status"] == "unloading"
    assert client.post(f"{base}/complete-unloading").json()["latest_status"] == "inspection_pending"
    inspecting = client.post(f"{base}/start-inspection", json={"inspected_by": "Thandi"}).json()
    assert inspecting["inspected_by"] == "Thandi"
    passed = client.post(f"{base}/complete-inspection", json={"outcome": "passed", "notes": "ok"}).json()
    assert passed["inspection_status"] == "passed"
    assert client.post(f"{base}/start-receiving", json={"received_by": "Sipho"}).json()["latest_status"] == "receiving"
    received = client.post(f"{base}/complete-receiving", json={"received_quantity": "90"}).json()
    assert received["receiving_status"] == "partial"
    assert client.post(f"{base}/mark-stored").json()["latest_status"] == "stored"


def test_out_of_order_action_is_400(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.UNLOADING)
    response = client.post(f"/api/shipments/{shipment.id}/start-receiving")
    assert response.status_code == 400
    assert "INSPECTION_PASSED" in response.json()["detail"]


def test_on_hold_without_hold_type_is_422(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.INSPECTING)
    response = client.post(
        f"/api/shipments/{shipment.id}/complete-inspection",
        json={"outcome": "passed_on_hold", "hold_types": []},
    )
    assert response.status_code == 422

    held = client.post(
        f"/api/shipments/{shipment.id}/complete-inspection",
        json={"outcome": "passed_on_hold", "hold_types": ["Pending Results"]},
    )
    assert held.status_code == 200
    assert held.json()["latest_status"] == "inspection_on_hold"


def test_reject_without_archiving_keeps_row(client, db, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.INSPECTION_FAILED)
    response = client.post(
        f"/api/shipments/{shipment.id}/reject",
        json={"rejection_reason": "Expired stock", "rejected_by": "QA", "archive_shipment": False},
    )
    assert response.status_code == 200
    assert response.json()["latest_status"] == "rejected"
    assert db.query(Archive).count() == 0


def test_reject_archives_and_removes_row(client, db, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.INSPECTION_FAILED, order_ref="PO777")
    response = client.post(
        f"/api/shipments/{shipment.id}/reject",
        json={"rejection_reason": "Expired stock"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["archived"] is True
    assert body["archive_file_name"].startswith("manual_archive_PO777_")

    db.expire_all()
    assert db.query(Shipment).count() == 0
    archive = db.query(Archive).one()
    assert archive.total_shipments == 1
    assert archive.data[0]["latestStatus"] == "rejected"
    assert archive.data[0]["rejectionReason"] == "Expired stock"


def test_reject_requires_failed_inspection(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.INSPECTION_PASSED)
    response = client.post(f"/api/shipments/{shipment.id}/reject", json={"rejection_reason": "No"})
    assert response.status_code == 400


def test_amend_status_resets_workflow(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.RECEIVED, received_by="Sipho", inspected_by="Thandi")
    response = client.post(f"/api/shipments/{shipment.id}/amend-status")
    assert response.status_code == 200
    data = response.json()
    assert data["latest_status"] == "in_transit_seaway"
    assert data["received_by"] is None
    assert data["inspected_by"] is None
