"""
ZAR exchange rates for costing - cached in the database, refreshed from public APIs.

Lookup order: fresh cache, live APIs (in configured order), stale cache, configured fallback.
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse
import logging

import httpx
from sqlalchemy.orm import Session

from freight_console.config.defaults_loader import get_costing_defaults
from freight_console.db.database import settings
from freight_console.models import ExchangeRate
from freight_console.services.costing_calculations import to_decimal

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5.0
QUOTE_CURRENCY = "ZAR"
FOREIGN_CURRENCIES = ("USD", "EUR")


class ExchangeRateUnavailable(Exception):
    pass


def currency_pair(currency: str) -> str:
    currency = (currency or "").upper()
    if currency not in FOREIGN_CURRENCIES:
        raise ValueError(f"Unsupported currency '{currency}'. Use one of: {', '.join(FOREIGN_CURRENCIES)}")
    return f"{currency}/{QUOTE_CURRENCY}"


def _serialize(row: ExchangeRate, is_stale: bool = False) -> Dict[str, Any]:
    return {
        "currency_pair": row.currency_pair,
        "rate": row.rate,
        "source": row.source,
        "fetched_at": row.fetched_at,
        "is_stale": is_stale,
        "is_fallback": row.source == "fallback",
    }


def _is_fresh(row: ExchangeRate, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return now - row.fetched_at < timedelta(minutes=settings.exchange_rate_ttl_minutes)


def fetch_rate_from_api(currency: str) -> Tuple[Decimal, str]:
    """Try each configured API in turn; the first positive ZAR rate wins."""
    errors = []
    with httpx.Client(timeout=REQUEST_TIMEOUT) as client:
        for template in settings.exchange_rate_urls:
            url = template.format(base=currency.upper())
            try:
                response = client.get(url)
                response.raise_for_status()
                rate = to_decimal(response.json().get("rates", {}).get(QUOTE_CURRENCY))
                if rate > 0:
                    return rate.quantize(Decimal("0.0001")), urlparse(url).netloc
                errors.append(f"{url}: no {QUOTE_CURRENCY} rate")
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Exchange rate API %s failed: %s", url, e)
                errors.append(f"{url}: {e}")
    raise ExchangeRateUnavailable("; ".join(errors) or "No exchange rate APIs configured")


def _store(db: Session, pair: str, rate: Decimal, source: str) -> ExchangeRate:
    row = db.query(ExchangeRate).filter(ExchangeRate.currency_pair == pair).first()
    if not row:
        row = ExchangeRate(currency_pair=pair)
        db.add(row)
    row.rate = rate
    row.source = source
    row.fetched_at = datetime.utcnow()
    db.commit()
    db.refresh(row)
    return row


def _fallback(pair: str, currency: str) -> Dict[str, Any]:
    rates = get_costing_defaults()["fallback_exchange_rates"]
    return {
        "currency_pair": pair,
        "rate": rates.get(currency.upper(), Decimal("0")),
        "source": "fallback",
        "fetched_at": datetime.utcnow(),
        "is_stale": True,
        "is_fallback": True,
    }


def refresh_rate(db: Session, currency: str = "USD") -> Dict[str, Any]:
    """Fetch a live rate, degrading to the stale cache and then the fallback."""
    pair = currency_pair(currency)
    try:
        rate, source = fetch_rate_from_api(currency)
    except ExchangeRateUnavailable as e:
        logger.error("Exchange rate refresh for %s failed: %s", pair, e)
        cached = db.query(ExchangeRate).filter(ExchangeRate.currency_pair == pair).first()
        if cached:
            return _serialize(cached, is_stale=True)
        return _fallback(pair, currency)
    row = _store(db, pair, rate, source)
    logger.info("Exchange rate %s refreshed: %s from %s", pair, rate, source)
    return _serialize(row)


def get_current_rate(db: Session, currency: str = "USD") -> Dict[str, Any]:
    pair = currency_pair(currency)
    cached = db.query(ExchangeRate).filter(ExchangeRate.currency_pair == pair).first()
    if cached and (cached.source == "manual" or _is_fresh(cached)):
        return _serialize(cached)
    return refresh_rate(db, currency)


def set_manual_rate(db: Session, rate: Any, currency: str = "USD") -> Dict[str, Any]:
    pair = currency_pair(currency)
    value = to_decimal(rate)
    if value <= 0:
        raise ValueError("Rate must be greater than zero")
    row = _store(db, pair, value.quantize(Decimal("0.0001")), "manual")
    logger.info("Exchange rate %s set manually to %s", pair, value)
    return _serialize(row)
