"""
Exchange rate cache model.
"""
from sqlalchemy import Column, String, DateTime, Numeric
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from freight_console.db.database import Base


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    currency_pair = Column(String, nullable=False, unique=True)  # e.g., "USD/ZAR"
    rate = Column(Numeric(12, 4), nullable=False)
    source = Column(String, nullable=True)  # api host, "manual" or "fallback"
    fetched_at = Column(DateTime, default=datetime.utcnow, nullable=False)
