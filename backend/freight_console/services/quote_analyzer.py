"""
Freight quote analysis - pull prices, routes, services, transit times and
validity dates out of quote PDFs and compare quotes side by side.

Confidence scoring (capped at 100):
- prices found +30, routes +25, services +20, transit times +15, validity +10
- at least 3 prices +10, at least 2 routes +5
"""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from pypdf import PdfReader
from pypdf.errors import PyPdfError

logger = logging.getLogger(__name__)

CURRENCY_RE = re.compile(r"(?:\bR|USD|EUR|ZAR|GBP|\$|€|£)\s*\d[\d,]*(?:\.\d{2})?")
# Bare numbers only count as prices with thousands separators or cents
PRICE_RE = re.compile(r"\b\d{1,3}(?:,\d{3})+(?:\.\d{2})?\b|\b\d+\.\d{2}\b")
ROUTE_RE = re.compile(
    r"\b(?:from|origin)[:\s]+([A-Za-z][A-Za-z ]*?)\s*(?:\bto\b|destination[:\s]|→)\s*"
    r"([A-Za-z][A-Za-z ]*?)(?=\s*(?:[\n,.;(]|$|\bvia\b))",
    re.IGNORECASE | re.MULTILINE,
)
SERVICE_RE = re.compile(r"air\s*freight|sea\s*freight|road\s*freight|express|economy|priority|standard", re.IGNORECASE)
TRANSIT_RE = re.compile(
    r"(?:transit|delivery|lead)(?:\s*time)?[:\s]*(\d+)(?:\s*-\s*\d+)?\s*(days?|weeks?|hours?)",
    re.IGNORECASE,
)
VALIDITY_RE = re.compile(r"(?:valid(?:\s+until)?|expires?|expiry)[:\s]*(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})", re.IGNORECASE)

CURRENCY_SYMBOLS = {"R": "ZAR", "$": "USD", "€": "EUR", "£": "GBP"}

# Matches closer than this many characters are the same amount seen twice
PRICE_DEDUP_DISTANCE = 10
LOW_CONFIDENCE = 50
PRICE_SPREAD_THRESHOLD = 1000


def extract_text_from_pdf(file_path: str) -> str:
    try:
        reader = PdfReader(file_path)
        return "\n".join((page.extract_text() or "") for page in reader.pages)
    except (PyPdfError, OSError) as e:
        logger.error("Failed to read PDF %s: %s", file_path, e)
        raise ValueError(f"Failed to analyze PDF: {e}")


def clean_price(raw: str) -> Dict[str, Any]:
    cleaned = re.sub(r"\s+", " ", raw).strip()
    numeric_match = re.search(r"\d[\d,]*(?:\.\d{2})?", cleaned)
    numeric = float(numeric_match.group(0).replace(",", "")) if numeric_match else 0.0
    currency_match = re.search(r"[A-Z]{3}|[$€£]|^R", cleaned)
    currency = "Unknown"
    if currency_match:
        token = currency_match.group(0)
        currency = CURRENCY_SYMBOLS.get(token, token)
    return {
        "original": cleaned,
        "numeric": numeric,
        "currency": currency,
        "formatted": f"{currency} {numeric:,.2f}",
    }


def clean_location(location: Optional[str]) -> str:
    if not location or not location.strip():
        return "Not specified"
    return re.sub(r"[:\-\s]+$", "", location.strip()).strip() or "Not specified"


def _time_unit(match_text: str) -> str:
    lowered = match_text.lower()
    if "week" in lowered:
        return "weeks"
    if "hour" in lowered:
        return "hours"
    return "days"


def calculate_confidence(analysis: Dict[str, Any]) -> int:
    score = 0
    if analysis["prices"]:
        score += 30
    if analysis["routes"]:
        score += 25
    if analysis["services"]:
        score += 20
    if analysis["transit_times"]:
        score += 15
    if analysis["validity_dates"]:
        score += 10
    if len(analysis["prices"]) >= 3:
        score += 10
    if len(analysis["routes"]) >= 2:
        score += 5
    return min(100, score)


def extract_rates_from_text(text: str) -> Dict[str, Any]:
    """Pattern-match quote text; pure function of the text."""
    candidates = [(m.start(), m.group(0)) for m in CURRENCY_RE.finditer(text)]
    candidates += [(m.start(), m.group(0)) for m in PRICE_RE.finditer(text)]
    candidates.sort(key=lambda c: c[0])

    prices = []
    last_position = None
    for position, raw in candidates:
        if last_position is not None and abs(position - last_position) <= PRICE_DEDUP_DISTANCE:
            last_position = position
            continue
        prices.append(clean_price(raw))
        last_position = position

    routes = [
        {
            "origin": clean_location(m.group(1)),
            "destination": clean_location(m.group(2)),
            "full_match": m.group(0).strip(),
        }
        for m in ROUTE_RE.finditer(text)
    ]

    services: List[str] = []
    for m in SERVICE_RE.finditer(text):
        service = re.sub(r"\s+", " ", m.group(0).lower()).strip()
        if service not in services:
            services.append(service)

    transit_times = [
        {"duration": int(m.group(1)), "unit": _time_unit(m.group(0)), "full_match": m.group(0)}
        for m in TRANSIT_RE.finditer(text)
    ]
    validity_dates = [{"date": m.group(1), "full_match": m.group(0)} for m in VALIDITY_RE.finditer(text)]

    analysis = {
        "prices": prices,
        "routes": routes,
        "services": services,
        "transit_times": transit_times,
        "validity_dates": validity_dates,
        "raw_text": text,
        "confidence": 0,
    }
    analysis["confidence"] = calculate_confidence(analysis)
    return analysis


def analyze_quote_file(file_path: str) -> Dict[str, Any]:
    path = Path(file_path)
    text = extract_text_from_pdf(str(path))
    analysis = extract_rates_from_text(text)
    analysis["metadata"] = {
        "filename": path.name,
        "size": path.stat().st_size,
        "analyzed_at": datetime.utcnow().isoformat(),
        "text_length": len(text),
    }
    logger.info(
        "Analyzed quote %s prices=%d routes=%d confidence=%d",
        path.name,
        len(analysis["prices"]),
        len(analysis["routes"]),
        analysis["confidence"],
    )
    return analysis


def _quote_name(analysis: Dict[str, Any], index: int) -> str:
    return (analysis.get("metadata") or {}).get("filename") or f"Quote {index}"


def generate_comparison_report(analyses: List[Dict[str, Any]]) -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "summary": {
            "total_quotes": len(analyses),
            "average_confidence": 0,
            "total_prices_found": 0,
            "total_routes_found": 0,
            "generated_at": datetime.utcnow().isoformat(),
        },
        "quotes": [],
        "best_prices": [],
        "route_comparison": {},
        "service_comparison": {},
        "recommendations": [],
    }

    all_prices = []
    for index, analysis in enumerate(analyses, start=1):
        name = _quote_name(analysis, index)
        numerics = [p["numeric"] for p in analysis["prices"]]
        report["quotes"].append({
            "index": index,
            "filename": name,
            "forwarder": analysis.get("forwarder"),
            "confidence": analysis["confidence"],
            "summary": {
                "price_count": len(analysis["prices"]),
                "route_count": len(analysis["routes"]),
                "service_count": len(analysis["services"]),
                "lowest_price": min(numerics) if numerics else None,
                "highest_price": max(numerics) if numerics else None,
            },
            "details": analysis,
        })
        report["summary"]["total_prices_found"] += len(analysis["prices"])
        report["summary"]["total_routes_found"] += len(analysis["routes"])

        for price in analysis["prices"]:
            if price["numeric"] > 0:
                all_prices.append({**price, "quote_index": index, "filename": name})

        for route in analysis["routes"]:
            key = f"{route['origin']} → {route['destination']}"
            report["route_comparison"].setdefault(key, []).append(
                {"quote_index": index, "filename": name, "prices": analysis["prices"]}
            )
        for service in analysis["services"]:
            report["service_comparison"].setdefault(service, []).append(
                {"quote_index": index, "filename": name, "prices": analysis["prices"]}
            )

    if analyses:
        report["summary"]["average_confidence"] = round(
            sum(a["confidence"] for a in analyses) / len(analyses)
        )
    report["best_prices"] = sorted(all_prices, key=lambda p: p["numeric"])[:10]
    report["recommendations"] = generate_recommendations(report)
    return report


def generate_recommendations(report: Dict[str, Any]) -> List[Dict[str, str]]:
    recommendations = []
    best_prices = report["best_prices"]
    if best_prices:
        cheapest = best_prices[0]
        recommendations.append({
            "type": "cost_saving",
            "priority": "high",
            "title": "Lowest Price Found",
            "description": f"Best rate: {cheapest['formatted']} from {cheapest['filename']}",
            "action": f"Consider {cheapest['filename']} for cost optimization",
        })
        if len(best_prices) > 1:
            spread = best_prices[-1]["numeric"] - cheapest["numeric"]
            if spread > PRICE_SPREAD_THRESHOLD:
                recommendations.append({
                    "type": "cost_analysis",
                    "priority": "medium",
                    "title": "Significant Price Variation",
                    "description": f"Price difference of {cheapest['currency']} {spread:,.2f} between quotes",
                    "action": "Review service levels to ensure fair comparison",
                })

    low_confidence = [q for q in report["quotes"] if q["confidence"] < LOW_CONFIDENCE]
    if low_confidence:
        recommendations.append({
            "type": "data_quality",
            "priority": "medium",
            "title": "Low Confidence Analysis",
            "description": f"{len(low_confidence)} quote(s) need manual review",
            "action": "Check PDF quality and consider requesting structured quotes",
        })

    route_count = len(report["route_comparison"])
    if route_count > 1:
        recommendations.append({
            "type": "route_optimization",
            "priority": "low",
            "title": "Multiple Routes Available",
            "description": f"{route_count} different routes identified",
            "action": "Compare transit times and service levels across routes",
        })
    return recommendations
