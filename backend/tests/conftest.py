"""
Test configuration: in-memory SQLite, no SMTP, auth overridden with a fixed user.
"""
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="freight_console_uploads_")
os.environ["SMTP_HOST"] = ""
os.environ["NOTIFICATION_RECIPIENTS"] = ""
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from freight_console.db.database import Base, get_db, settings
from freight_console.main import app
from freight_console.models import Shipment, ShipmentStatus
from freight_console.services.auth import get_current_user

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_get_current_user():
    return {"username": "tester", "roles": ["admin"]}


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_current_user] = override_get_current_user


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


@pytest.fixture()
def make_shipment(db):
    def _make(status=ShipmentStatus.ARRIVED_PTA, order_ref="PO123", updated_at=None, **fields):
        stamp = updated_at or datetime.utcnow()
        shipment = Shipment(
            supplier=fields.pop("supplier", "Acme Foods"),
            order_ref=order_ref,
            product_name=fields.pop("product_name", "Dextrose"),
            quantity=fields.pop("quantity", Decimal("100")),
            final_pod=fields.pop("final_pod", "PTA"),
            receiving_warehouse=fields.pop("receiving_warehouse", "PTA Main"),
            latest_status=status.value if isinstance(status, ShipmentStatus) else status,
            created_at=stamp,
            updated_at=stamp,
            **fields,
        )
        db.add(shipment)
        db.commit()
        db.refresh(shipment)
        return shipment
    return _make
