from datetime import datetime, timedelta

from freight_console.models import Archive, Shipment, ShipmentStatus


def archive_two(client, make_shipment):
    first = make_shipment(order_ref="PO123")
    second = make_shipment(order_ref="PO456", status=ShipmentStatus.STORED)
    response = client.post("/api/shipments/archives/manual", json={"shipment_ids": [str(first.id), str(second.id)]})
    assert response.status_code == 201
    return response.json()


def test_manual_archive_moves_shipments(client, db, make_shipment):
    make_shipment(order_ref="PO789", status=ShipmentStatus.IN_TRANSIT_SEAWAY)
    body = archive_two(client, make_shipment)
    assert body["archived_count"] == 2
    assert body["remaining_count"] == 1
    assert body["archive_file_name"].startswith("manual_archive_")

    db.expire_all()
    assert [s.order_ref for s in db.query(Shipment).all()] == ["PO789"]

    listing = client.get("/api/shipments/archives").json()
    assert len(listing) == 1
    assert listing[0]["kind"] == "manual"
    assert listing[0]["total_shipments"] == 2
    assert listing[0]["display_name"].startswith("Manual Archive - ")


def test_manual_archive_skips_shipments_not_yet_arrived(client, make_shipment):
    shipment = make_shipment(status=ShipmentStatus.IN_TRANSIT_SEAWAY)
    response = client.post("/api/shipments/archives/manual", json={"shipment_ids": [str(shipment.id)]})
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid ARRIVED or STORED shipments found to archive"


def test_archive_detail_search(client, make_shipment):
    file_name = archive_two(client, make_shipment)["archive_file_name"]
    detail = client.get(f"/api/shipments/archives/{file_name}").json()
    assert detail["total_shipments"] == 2
    assert len(detail["data"]) == 2

    searched = client.get(f"/api/shipments/archives/{file_name}", params={"search": "po456"}).json()
    assert [s["orderRef"] for s in searched["data"]] == ["PO456"]


def test_missing_archive_is_404(client):
    assert client.get("/api/shipments/archives/nope.json").status_code == 404
    response = client.put("/api/shipments/archives/nope.json/rename", json={"new_name": "Anything"})
    assert response.status_code == 404


def test_rename_archive(client, make_shipment):
    file_name = archive_two(client, make_shipment)["archive_file_name"]

    blank = client.put(f"/api/shipments/archives/{file_name}/rename", json={"new_name": "   "})
    assert blank.status_code == 400

    renamed = client.put(f"/api/shipments/archives/{file_name}/rename", json={"new_name": "Q3 Returns"}).json()
    assert renamed["old_file_name"] == file_name
    assert renamed["new_file_name"].startswith("custom_archive_Q3_Returns_")

    listing = client.get("/api/shipments/archives").json()
    assert listing[0]["display_name"] == "Q3 Returns"
    assert listing[0]["kind"] == "custom"
    assert client.get(f"/api/shipments/archives/{file_name}").status_code == 404


def test_update_archive_replaces_data(client, make_shipment):
    file_name = archive_two(client, make_shipment)["archive_file_name"]
    response = client.put(
        f"/api/shipments/archives/{file_name}",
        json={"data": [{"supplier": "Acme Foods", "orderRef": "PO123", "notes": "Corrected"}]},
    )
    assert response.status_code == 200
    assert response.json()["total_shipments"] == 1
    assert response.json()["data"][0]["notes"] == "Corrected"


def test_backups_only_listed_on_request(client, make_shipment):
    make_shipment()
    backup = client.post("/api/shipments/archives/backup")
    assert backup.status_code == 201
    assert backup.json()["kind"] == "data_backup"
    assert backup.json()["display_name"].startswith("Data Backup - ")

    assert client.get("/api/shipments/archives").json() == []
    assert len(client.get("/api/shipments/archives", params={"include_backups": True}).json()) == 1
    assert client.get("/api/shipments").json()["total"] == 1


def test_auto_archive(client, db, make_shipment):
    now = datetime.utcnow()
    make_shipment(order_ref="OLD1", updated_at=now - timedelta(days=45))
    make_shipment(order_ref="NEW1", status=ShipmentStatus.ARRIVED_KLM, updated_at=now - timedelta(days=2))

    stats = client.get("/api/shipments/archives/auto-archive/stats").json()
    assert stats["eligible_for_archive"] == 1
    assert stats["total_arrived"] == 2

    result = client.post("/api/shipments/archives/auto-archive", json={"days_old": 30}).json()
    assert result["archived_count"] == 1
    assert result["archive_file_name"].startswith("auto_archive_arrived_")

    again = client.post("/api/shipments/archives/auto-archive").json()
    assert again["archived_count"] == 0
    assert again["archive_file_name"] is None

    db.expire_all()
    assert db.query(Archive).one().data[0]["orderRef"] == "OLD1"


def test_monthly_stats(client, make_shipment):
    archive_two(client, make_shipment)
    month = datetime.utcnow().strftime("%Y-%m")
    stats = client.get("/api/shipments/archives/stats", params={"month": month}).json()
    assert stats["total_archives"] == 1
    assert stats["total_shipments"] == 2
    assert stats["by_kind"] == {"Manual": 1}

    assert client.get("/api/shipments/archives/stats", params={"month": "2025-13"}).status_code == 400


def test_export_archive_to_excel(client, make_shipment):
    file_name = archive_two(client, make_shipment)["archive_file_name"]
    response = client.get(f"/api/shipments/archives/{file_name}/export")
    assert response.status_code == 200
    assert response.content[:2] == b"PK"
