"""
Loading-state placeholder shapes for the console screens.
"""
from typing import Any, Dict, Optional

SKELETON_KINDS = ("table", "form", "card-grid", "list", "page", "shipment-table")

SHIPMENT_TABLE_COLUMNS = [
    "Supplier",
    "Order Ref",
    "Product",
    "Quantity",
    "Destination",
    "Week",
    "Status",
    "Actions",
]


def table_skeleton(rows: int = 5, columns: int = 5) -> Dict[str, Any]:
    return {
        "kind": "table",
        "rows": rows,
        "columns": columns,
        "header": [{"width": "60%"} for _ in range(columns)],
        "cells": [[{"width": "80%"} for _ in range(columns)] for _ in range(rows)],
    }


def form_skeleton(fields: int = 4) -> Dict[str, Any]:
    return {
        "kind": "form",
        "fields": [{"label_width": "30%", "input_height": 40} for _ in range(fields)],
        "actions": [{"width": 100}, {"width": 100}],
    }


def card_grid_skeleton(count: int = 4, columns: int = 4) -> Dict[str, Any]:
    return {
        "kind": "card-grid",
        "columns": columns,
        "cards": [{"title_width": "70%", "lines": 3} for _ in range(count)],
    }


def list_skeleton(items: int = 5) -> Dict[str, Any]:
    return {
        "kind": "list",
        "items": [{"avatar": True, "primary_width": "60%", "secondary_width": "40%"} for _ in range(items)],
    }


def page_skeleton() -> Dict[str, Any]:
    return {
        "kind": "page",
        "header": {"title_width": "40%", "subtitle_width": "25%"},
        "stats": card_grid_skeleton(),
        "content": table_skeleton(),
    }


def shipment_table_skeleton(rows: int = 10) -> Dict[str, Any]:
    shape = table_skeleton(rows=rows, columns=len(SHIPMENT_TABLE_COLUMNS))
    shape["kind"] = "shipment-table"
    shape["column_labels"] = SHIPMENT_TABLE_COLUMNS
    return shape


def build_skeleton(
    kind: str,
    rows: Optional[int] = None,
    columns: Optional[int] = None,
    fields: Optional[int] = None,
    count: Optional[int] = None,
    items: Optional[int] = None,
) -> Dict[str, Any]:
    """Layout descriptor for a placeholder; unset sizes use the component defaults."""
    if kind == "table":
        return table_skeleton(rows or 5, columns or 5)
    if kind == "form":
        return form_skeleton(fields or 4)
    if kind == "card-grid":
        return card_grid_skeleton(count or 4, columns or 4)
    if kind == "list":
        return list_skeleton(items or 5)
    if kind == "page":
        return page_skeleton()
    if kind == "shipment-table":
        return shipment_table_skeleton(rows or 10)
    raise ValueError(f"Unknown skeleton kind '{kind}'. Use one of: {', '.join(SKELETON_KINDS)}")
