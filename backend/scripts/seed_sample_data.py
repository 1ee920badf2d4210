"""
Script to seed suppliers, shipments, a draft cost estimate and a data backup for local testing.
Run this after setting up the database.
"""
import sys
import os
from datetime import datetime, timedelta
from decimal import Decimal

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from freight_console.db.database import SessionLocal, Base, engine
from freight_console.models import Archive, Supplier, Shipment, ShipmentStatus, CostEstimate
from freight_console.services.archive_service import backup_file_name, create_archive, shipment_snapshot
from freight_console.services.auth import create_access_token
from freight_console.services.costing_calculations import apply_charge_defaults, calculate_all_totals, products_for_storage

SAMPLE_SUPPLIERS = [
    ("Qingdao Foods Co", "China"),
    ("Hamburg Ingredients GmbH", "Germany"),
]

SAMPLE_SHIPMENTS = [
    ("Qingdao Foods Co", "PO1001", "Dextrose", ShipmentStatus.ARRIVED_PTA, 45),
    ("Qingdao Foods Co", "PO1002", "Citric Acid", ShipmentStatus.ARRIVED_KLM, 3),
    ("Hamburg Ingredients GmbH", "PO2001", "Whey Powder", ShipmentStatus.IN_TRANSIT_SEAWAY, 0),
    ("Hamburg Ingredients GmbH", "PO2002", "Cocoa Powder", ShipmentStatus.INSPECTION_PENDING, 1),
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        for name, country in SAMPLE_SUPPLIERS:
            if not db.query(Supplier).filter(Supplier.name == name).first():
                db.add(Supplier(name=name, country=country))
                print(f"Created supplier: {name}")

        now = datetime.utcnow()
        for supplier, order_ref, product, status, days_ago in SAMPLE_SHIPMENTS:
            if db.query(Shipment).filter(Shipment.order_ref == order_ref).first():
                print(f"Shipment {order_ref} already exists")
                continue
            stamp = now - timedelta(days=days_ago)
            db.add(Shipment(
                supplier=supplier,
                order_ref=order_ref,
                product_name=product,
                quantity=Decimal("1000"),
                final_pod="PTA",
                receiving_warehouse="PTA Main",
                latest_status=status.value,
                created_at=stamp,
                updated_at=stamp,
            ))
            print(f"Created shipment: {order_ref} ({status.value})")

        if not db.query(CostEstimate).filter(CostEstimate.reference_number == "CE-SAMPLE-001").first():
            values = apply_charge_defaults({
                "reference_number": "CE-SAMPLE-001",
                "supplier_name": "Qingdao Foods Co",
                "status": "draft",
                "container_type": "40ft",
                "roe_origin": Decimal("18.50"),
                "roe_eur": Decimal("20.00"),
                "ocean_freight_usd": Decimal("2500"),
                "origin_charge_usd": Decimal("350"),
                "products": [
                    {"name": "Dextrose", "currency": "USD", "weight_kg": "12000", "rate_per_kg": "0.85", "duty_percent": "10"},
                    {"name": "Citric Acid", "currency": "USD", "weight_kg": "8000", "rate_per_kg": "1.20", "duty_percent": "0"},
                ],
                "customs_duty_not_applicable": False,
            })
            values["products"] = products_for_storage(values["products"])
            values.update(calculate_all_totals(values))
            db.add(CostEstimate(**values))
            print("Created cost estimate: CE-SAMPLE-001")

        if not db.query(Archive).first():
            db.flush()
            file_name = backup_file_name()
            create_archive(db, file_name, [shipment_snapshot(s) for s in db.query(Shipment).all()])
            print(f"Created data backup: {file_name}")

        db.commit()
        print(f"Sample bearer token: {create_access_token('admin', roles=['admin'])}")
    except Exception as e:
        print(f"Error: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
