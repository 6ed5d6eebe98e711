"""
Deallocation Command Builder
============================
Compensates an allocation whose payment was rejected. Two-item plan:

  item 0  Update  allocation → PAYMENT_REJECTED   IF it still matches the snapshot
                                                  AND is still ALLOCATED
  item 1  Update  SKU counter, units += n         IF it exists

The status check on item 0 is what makes a redelivered payment-rejected event
harmless: the second attempt cannot return the units a second time.
"""
from __future__ import annotations

from shared.allocations import AllocationStatus, TransitionOrderAllocationCommand, build_allocation_status_update
from shared.dynamodb import serialize_item
from shared.keys import sku_key


class DeallocateOrderPaymentRejectedCommand(TransitionOrderAllocationCommand):
    target_status = AllocationStatus.PAYMENT_REJECTED


def build_deallocate_order_stock_transaction(command: DeallocateOrderPaymentRejectedCommand, table_name: str) -> list[dict]:
    release_allocation = {"Update": build_allocation_status_update(command, table_name)}
    increment_sku = {
        "Update": {
            "TableName": table_name,
            "Key": serialize_item(sku_key(command.sku)),
            "UpdateExpression": "SET #units = #units + :units, #updatedAt = :updatedAt",
            "ConditionExpression": "attribute_exists(pk) AND attribute_exists(sk)",
            "ExpressionAttributeNames": {"#units": "units", "#updatedAt": "updatedAt"},
            "ExpressionAttributeValues": serialize_item({
                ":units": command.units,
                ":updatedAt": command.updated_at,
            }),
        }
    }
    return [release_allocation, increment_sku]
