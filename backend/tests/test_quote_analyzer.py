import pytest
from pypdf.errors import ParseError

from freight_console.services import quote_analyzer
from freight_console.services.quote_analyzer import (
    clean_location,
    clean_price,
    extract_rates_from_text,
    extract_text_from_pdf,
    generate_comparison_report,
)

SHANGHAI_QUOTE = """Quote from Shanghai to Durban
Sea Freight service, Express option
Ocean freight: USD 1,250.00
THC: 350.00
Docs: R 1,500
Transit time: 28-32 days
Valid until: 30/09/2025
"""

NINGBO_QUOTE = """Quote from Ningbo to Cape Town.
Total: USD 2,900.00
"""


def named(text, filename):
    analysis = extract_rates_from_text(text)
    analysis["metadata"] = {"filename": filename}
    return analysis


def test_clean_price():
    assert clean_price("USD 1,250.00") == {
        "original": "USD 1,250.00",
        "numeric": 1250.0,
        "currency": "USD",
        "formatted": "USD 1,250.00",
    }
    assert clean_price("R 1,500")["currency"] == "ZAR"
    assert clean_price("€ 80")["currency"] == "EUR"
    assert clean_price("350.00")["currency"] == "Unknown"


def test_clean_location():
    assert clean_location("  Durban - ") == "Durban"
    assert clean_location("") == "Not specified"
    assert clean_location(None) == "Not specified"


def test_extracts_quote_fields():
    analysis = extract_rates_from_text(SHANGHAI_QUOTE)
    assert [p["numeric"] for p in analysis["prices"]] == [1250.0, 350.0, 1500.0]
    assert [p["currency"] for p in analysis["prices"]] == ["USD", "Unknown", "ZAR"]
    assert analysis["routes"][0]["origin"] == "Shanghai"
    assert analysis["routes"][0]["destination"] == "Durban"
    assert analysis["services"] == ["sea freight", "express"]
    assert analysis["transit_times"][0]["duration"] == 28
    assert analysis["transit_times"][0]["unit"] == "days"
    assert analysis["validity_dates"][0]["date"] == "30/09/2025"
    assert analysis["confidence"] == 100


def test_multi_word_destination():
    route = extract_rates_from_text(NINGBO_QUOTE)["routes"][0]
    assert route["origin"] == "Ningbo"
    assert route["destination"] == "Cape Town"


def test_text_without_quote_data_scores_zero():
    analysis = extract_rates_from_text("Please call us for pricing on 2025 shipments")
    assert analysis["prices"] == []
    assert analysis["routes"] == []
    assert analysis["confidence"] == 0


def test_same_amount_is_counted_once():
    analysis = extract_rates_from_text("Freight USD 1,250.00 all in")
    assert len(analysis["prices"]) == 1


def test_comparison_report():
    report = generate_comparison_report([
        named(SHANGHAI_QUOTE, "dsv-shanghai.pdf"),
        named(NINGBO_QUOTE, "dhl-ningbo.pdf"),
    ])
    assert report["summary"]["total_quotes"] == 2
    assert report["summary"]["total_prices_found"] == 4
    assert report["summary"]["average_confidence"] == 78
    assert [p["numeric"] for p in report["best_prices"]] == [350.0, 1250.0, 1500.0, 2900.0]
    assert report["best_prices"][0]["filename"] == "dsv-shanghai.pdf"
    assert set(report["route_comparison"]) == {"Shanghai → Durban", "Ningbo → Cape Town"}
    assert report["quotes"][1]["summary"]["lowest_price"] == 2900.0
    assert [r["type"] for r in report["recommendations"]] == [
        "cost_saving",
        "cost_analysis",
        "route_optimization",
    ]


def test_low_confidence_quotes_flagged_for_review():
    report = generate_comparison_report([named("Thanks for your enquiry", "blank.pdf")])
    assert report["best_prices"] == []
    assert [r["type"] for r in report["recommendations"]] == ["data_quality"]


def test_unreadable_pdf(tmp_path):
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not a pdf at all")
    with pytest.raises(ValueError):
        extract_text_from_pdf(str(broken))


def test_parse_errors_while_extracting_are_reported(monkeypatch, tmp_path):
    class BrokenPage:
        def extract_text(self):
            raise ParseError("bad content stream")

    class BrokenReader:
        def __init__(self, path):
            self.pages = [BrokenPage()]

    monkeypatch.setattr(quote_analyzer, "PdfReader", BrokenReader)
    with pytest.raises(ValueError, match="Failed to analyze PDF"):
        extract_text_from_pdf(str(tmp_path / "quote.pdf"))


def test_currency_code_in_prose_is_not_a_price():
    analysis = extract_rates_from_text("All rates quoted in USD, excluding VAT. Sea freight 1,250.00")
    assert [p["numeric"] for p in analysis["prices"]] == [1250.0]
    assert clean_price("USD")["numeric"] == 0.0
    assert clean_price("R ,")["numeric"] == 0.0
