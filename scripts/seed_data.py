#!/usr/bin/env python3
"""
Create the StockFlow tables in LocalStack (if missing) and restock a few SKUs.
Restocking is not one of the workers, so local runs seed counters directly.

Run against LocalStack: python scripts/seed_data.py
Seed more units:        python scripts/seed_data.py --units 500 --sku SKU-BLUE-MUG
"""
import argparse
import os
import time

import boto3
from botocore.exceptions import ClientError

parser = argparse.ArgumentParser()
parser.add_argument("--endpoint", default=os.environ.get("LOCALSTACK_ENDPOINT", "http://localhost:4566"))
parser.add_argument("--sku", action="append", help="SKU to restock (repeatable)")
parser.add_argument("--units", type=int, default=100)
args = parser.parse_args()

WAREHOUSE_TABLE = os.environ.get("WAREHOUSE_TABLE", "stockflow-warehouse")
EVENT_STORE_TABLE = os.environ.get("EVENT_STORE_TABLE", "stockflow-event-store")

client = boto3.client(
    "dynamodb",
    endpoint_url=args.endpoint,
    region_name="us-east-1",
    aws_access_key_id="test",
    aws_secret_access_key="test",
)

for table_name, stream in ((WAREHOUSE_TABLE, False), (EVENT_STORE_TABLE, True)):
    params = {
        "TableName": table_name,
        "AttributeDefinitions": [
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        "KeySchema": [
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if stream:
        params["StreamSpecification"] = {"StreamEnabled": True, "StreamViewType": "NEW_IMAGE"}
    try:
        client.create_table(**params)
        print(f"Created table {table_name}")
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceInUseException":
            raise
        print(f"Table {table_name} already exists")

now = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
for sku in args.sku or ["SKU-BLUE-MUG", "SKU-RED-TEAPOT"]:
    key = f"SKU#{sku}"
    client.update_item(
        TableName=WAREHOUSE_TABLE,
        Key={"pk": {"S": key}, "sk": {"S": key}},
        UpdateExpression=(
            "SET #units = if_not_exists(#units, :zero) + :units, "
            "#sku = :sku, #tn = :tn, #createdAt = if_not_exists(#createdAt, :now), #updatedAt = :now"
        ),
        ExpressionAttributeNames={
            "#units": "units", "#sku": "sku", "#tn": "_tn", "#createdAt": "createdAt", "#updatedAt": "updatedAt",
        },
        ExpressionAttributeValues={
            ":units": {"N": str(args.units)},
            ":zero": {"N": "0"},
            ":sku": {"S": sku},
            ":tn": {"S": "WAREHOUSE#SKU"},
            ":now": {"S": now},
        },
    )
    print(f"Restocked {sku} with {args.units} units")
