"""
Utilities for loading the console's business defaults.
"""
from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "console_defaults.yaml"


@lru_cache()
def load_defaults() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    with open(CONFIG_PATH, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_forwarders() -> List[str]:
    return [f.lower() for f in load_defaults().get("forwarders", ["dhl", "dsv", "afrigistics"])]


def get_quote_settings() -> Dict[str, Any]:
    quotes = load_defaults().get("quotes", {})
    return {
        "allowed_extensions": [ext.lower() for ext in quotes.get("allowed_extensions", [".pdf"])],
        "max_file_size": int(quotes.get("max_file_size_mb", 10)) * 1024 * 1024,
        "max_files_per_upload": int(quotes.get("max_files_per_upload", 10)),
    }


def get_hold_types() -> List[str]:
    return list(load_defaults().get("inspection", {}).get("hold_types", []))


def get_failure_reasons() -> List[str]:
    return list(load_defaults().get("inspection", {}).get("failure_reasons", []))


def get_auto_archive_days() -> int:
    return int(load_defaults().get("archive", {}).get("auto_archive_days_old", 30))


def _as_decimal(value: Any, default: str) -> Decimal:
    if value is None:
        return Decimal(default)
    return Decimal(str(value))


def get_costing_defaults() -> Dict[str, Any]:
    """Costing constants plus default local/destination charge amounts."""
    costing = load_defaults().get("costing", {})
    fallback_rates = costing.get("fallback_exchange_rates", {})
    return {
        "vat_rate_percent": _as_decimal(costing.get("vat_rate_percent"), "15"),
        "agency_fee_percentage": _as_decimal(costing.get("agency_fee_percentage"), "3.5"),
        "agency_fee_min": _as_decimal(costing.get("agency_fee_min"), "1187"),
        "customs_declaration_zar": _as_decimal(costing.get("customs_declaration_zar"), "590"),
        "fallback_exchange_rates": {
            code.upper(): _as_decimal(rate, "0") for code, rate in fallback_rates.items()
        },
        "local_charges": {
            name: _as_decimal(amount, "0") for name, amount in (costing.get("local_charges") or {}).items()
        },
        "destination_charges": {
            name: _as_decimal(amount, "0") for name, amount in (costing.get("destination_charges") or {}).items()
        },
    }
