"""Persisted key layout. Changing any of these breaks existing data."""
from __future__ import annotations

SKU_TYPE_NAME = "WAREHOUSE#SKU"
ORDER_ALLOCATION_TYPE_NAME = "WAREHOUSE#ORDER_ALLOCATION"
EVENT_TYPE_NAME = "#EVENT"


def sku_key(sku: str) -> dict:
    key = f"SKU#{sku}"
    return {"pk": key, "sk": key}


def order_allocation_key(sku: str, order_id: str) -> dict:
    key = f"SKU#{sku}#ORDER_ID#{order_id}#ALLOCATION"
    return {"pk": key, "sk": key}


def order_subject(order_id: str) -> str:
    return f"ORDER_ID#{order_id}"


def sku_subject(sku: str) -> str:
    return f"SKU#{sku}"


def event_sort_key(event_name: str, lot_id: str | None = None) -> str:
    if lot_id:
        return f"EVENT#{event_name}#LOT_ID#{lot_id}"
    return f"EVENT#{event_name}"
