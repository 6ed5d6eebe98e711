"""
Allocation Command Builder
==========================
Pure functions: validated order-created event → two-item TransactWriteItems
plan. Nothing here talks to AWS.

  item 0  Put     order allocation record    IF it does not exist yet
  item 1  Update  SKU counter, units -= n    IF it exists AND units >= n

Both items commit together or not at all, so there is never an allocation
without its decrement (or a decrement without its allocation). The item order
matters: the repository reads CancellationReasons by index.
"""
from __future__ import annotations

from shared.allocations import AllocationStatus
from shared.dynamodb import serialize_item
from shared.events import IncomingOrderCreatedEvent
from shared.keys import ORDER_ALLOCATION_TYPE_NAME, order_allocation_key, sku_key
from shared.models import OrderId, Price, Sku, Timestamp, Units, UserId, WarehouseModel, utc_now

ALLOCATION_ITEM_INDEX = 0
SKU_ITEM_INDEX = 1


class AllocateOrderStockCommand(WarehouseModel):
    order_id: OrderId
    sku: Sku
    units: Units
    price: Price
    user_id: UserId
    created_at: Timestamp
    updated_at: Timestamp

    @classmethod
    def from_incoming_event(cls, incoming_event: IncomingOrderCreatedEvent) -> "AllocateOrderStockCommand":
        data = incoming_event.event_data
        now = utc_now()
        return cls.validate_and_build({
            "orderId": data.order_id,
            "sku": data.sku,
            "units": data.units,
            "price": data.price,
            "userId": data.user_id,
            "createdAt": now,
            "updatedAt": now,
        })


def build_allocation_item(command: AllocateOrderStockCommand) -> dict:
    return {
        **order_allocation_key(command.sku, command.order_id),
        "_tn": ORDER_ALLOCATION_TYPE_NAME,
        "orderId": command.order_id,
        "sku": command.sku,
        "units": command.units,
        "price": command.price,
        "userId": command.user_id,
        "allocationStatus": AllocationStatus.ALLOCATED.value,
        "createdAt": command.created_at,
        "updatedAt": command.updated_at,
    }


def build_allocate_order_stock_transaction(command: AllocateOrderStockCommand, table_name: str) -> list[dict]:
    put_allocation = {
        "Put": {
            "TableName": table_name,
            "Item": serialize_item(build_allocation_item(command)),
            "ConditionExpression": "attribute_not_exists(pk) AND attribute_not_exists(sk)",
        }
    }
    decrement_sku = {
        "Update": {
            "TableName": table_name,
            "Key": serialize_item(sku_key(command.sku)),
            "UpdateExpression": "SET #units = #units - :units, #updatedAt = :updatedAt",
            "ConditionExpression": "attribute_exists(pk) AND attribute_exists(sk) AND #units >= :units",
            "ExpressionAttributeNames": {"#units": "units", "#updatedAt": "updatedAt"},
            "ExpressionAttributeValues": serialize_item({
                ":units": command.units,
                ":updatedAt": command.updated_at,
            }),
        }
    }
    return [put_allocation, decrement_sku]
