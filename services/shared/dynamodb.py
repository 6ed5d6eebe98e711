"""
DynamoDB Helpers
================
Thin wrappers around boto3 shared by every worker:
- Table/client lookup with table names read from the environment per call
- Marshalling between Python values and DynamoDB attribute values
- Reading error codes out of botocore ClientErrors, including the
  per-item CancellationReasons of a cancelled TransactWriteItems call

Table layout (single-table, pk and sk both hold the item key):
  SKU#{sku}                                  → SKU counter
  SKU#{sku}#ORDER_ID#{order_id}#ALLOCATION   → order allocation record
Event store table:
  pk ORDER_ID#{order_id} | SKU#{sku}, sk EVENT#{event_name}
"""
from __future__ import annotations

import os
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailed"
CONDITIONAL_CHECK_FAILED_EXCEPTION = "ConditionalCheckFailedException"
TRANSACTION_CANCELED_EXCEPTION = "TransactionCanceledException"

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def warehouse_table_name() -> str:
    return os.environ.get("WAREHOUSE_TABLE", "stockflow-warehouse")


def event_store_table_name() -> str:
    return os.environ.get("EVENT_STORE_TABLE", "stockflow-event-store")


def get_table(table_name: str):
    dynamodb = boto3.resource("dynamodb")
    return dynamodb.Table(table_name)


def get_client():
    return boto3.client("dynamodb")


# ---------------------------------------------------------------------------
# Marshalling
# ---------------------------------------------------------------------------

def decimal_to_python(obj: Any) -> Any:
    """
    DynamoDB returns Decimals for all numbers.
    Recursively convert to int or float so pydantic strict types accept them.
    """
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    if isinstance(obj, dict):
        return {k: decimal_to_python(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [decimal_to_python(v) for v in obj]
    return obj


def python_to_dynamodb(obj: Any) -> Any:
    """
    boto3 refuses floats. Recursively convert them to Decimal (via str, so
    19.99 stays 19.99 instead of its binary expansion).
    """
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: python_to_dynamodb(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [python_to_dynamodb(v) for v in obj]
    return obj


def serialize_item(item: dict) -> dict:
    """Python dict → low-level attribute-value map (for the client API)."""
    return {k: _serializer.serialize(v) for k, v in python_to_dynamodb(item).items()}


def deserialize_item(image: dict) -> dict:
    """Low-level attribute-value map (e.g. a stream NewImage) → plain Python."""
    return decimal_to_python({k: _deserializer.deserialize(v) for k, v in image.items()})


# ---------------------------------------------------------------------------
# Error inspection
# ---------------------------------------------------------------------------

def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def is_conditional_check_failed(error: ClientError) -> bool:
    return error_code(error) == CONDITIONAL_CHECK_FAILED_EXCEPTION


def cancellation_reasons(error: ClientError) -> list[dict]:
    """Per-item outcomes of a cancelled transaction, parallel to TransactItems."""
    if error_code(error) != TRANSACTION_CANCELED_EXCEPTION:
        return []
    return error.response.get("CancellationReasons") or []


def transaction_cancellation_code(error: ClientError, index: int) -> str | None:
    """
    Code reported for item `index` of a cancelled transaction:
    "ConditionalCheckFailed", "TransactionConflict", "None" (untouched), ...
    Returns None when the error is not a transaction cancellation.
    """
    reasons = cancellation_reasons(error)
    if index >= len(reasons):
        return None
    return reasons[index].get("Code")
