"""
Pytest configuration and shared fixtures.
Unit tests use moto (AWS mocks in-process).
Integration tests use LocalStack (real service emulation via Docker).
"""
import json
import os
import uuid

# Must be set before aws_xray_sdk is first imported; there is no daemon in tests
os.environ.setdefault("AWS_XRAY_SDK_ENABLED", "false")

import boto3
import pytest
from moto import mock_aws

WAREHOUSE_TABLE = "test-warehouse"
EVENT_STORE_TABLE = "test-event-store"


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Set fake AWS credentials so boto3 doesn't error in tests."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test")
    monkeypatch.setenv("WAREHOUSE_TABLE", WAREHOUSE_TABLE)
    monkeypatch.setenv("EVENT_STORE_TABLE", EVENT_STORE_TABLE)


def create_pk_sk_table(client, table_name):
    client.create_table(
        TableName=table_name,
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        KeySchema=[
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def dynamodb_tables(aws_env):
    """
    Create the warehouse table and the event store table using moto.
    Faster than LocalStack for unit tests, no Docker required.
    """
    with mock_aws():
        client = boto3.client("dynamodb", region_name="us-east-1")
        create_pk_sk_table(client, WAREHOUSE_TABLE)
        create_pk_sk_table(client, EVENT_STORE_TABLE)
        yield boto3.resource("dynamodb", region_name="us-east-1")


@pytest.fixture
def warehouse_table(dynamodb_tables):
    return dynamodb_tables.Table(WAREHOUSE_TABLE)


@pytest.fixture
def event_store_table(dynamodb_tables):
    return dynamodb_tables.Table(EVENT_STORE_TABLE)


@pytest.fixture
def seed_sku(warehouse_table):
    """Put a SKU counter directly; restocking is not part of this service."""
    from shared.keys import SKU_TYPE_NAME, sku_key

    def _seed(sku, units):
        warehouse_table.put_item(Item={
            **sku_key(sku),
            "_tn": SKU_TYPE_NAME,
            "sku": sku,
            "units": units,
            "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
        })
    return _seed


@pytest.fixture
def sku_units(warehouse_table):
    def _units(sku):
        key = f"SKU#{sku}"
        item = warehouse_table.get_item(Key={"pk": key, "sk": key}, ConsistentRead=True).get("Item")
        return None if item is None else int(item["units"])
    return _units


@pytest.fixture
def make_order_event():
    """Raw event store item (camelCase) for an order event."""
    def _make(event_name="ORDER_CREATED_EVENT", order_id=None, sku="SKU-BLUE-MUG", units=2, price=19.99,
              user_id="user-0001"):
        return {
            "eventName": event_name,
            "eventData": {
                "orderId": order_id or f"order-{uuid.uuid4().hex[:8]}",
                "sku": sku,
                "units": units,
                "price": price,
                "userId": user_id,
            },
            "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
        }
    return _make


@pytest.fixture
def make_sqs_event():
    """
    Wrap event store items the way they reach a worker:
    SQS record body → EventBridge event → detail.dynamodb.NewImage.
    Strings are passed through as raw bodies.
    """
    from shared.dynamodb import serialize_item

    def _make(*items):
        records = []
        for item in items:
            if isinstance(item, str):
                body = item
            else:
                body = json.dumps({
                    "source": "stockflow.event-store",
                    "detail-type": "EventStoreChange",
                    "detail": {"eventName": "INSERT", "dynamodb": {"NewImage": serialize_item(item)}},
                })
            records.append({"messageId": str(uuid.uuid4()), "body": body})
        return {"Records": records}
    return _make
