"""
Order Allocation Records
========================
An allocation reserves `units` of one SKU for one order. The record is
created by the allocation worker in the same transaction that decrements the
SKU counter, and from then on only `allocationStatus` moves:

  ALLOCATED ──▶ PAYMENT_REJECTED            (units returned to the counter)
      │
      └──────▶ COMPLETED_PAYMENT_ACCEPTED   (units stay consumed)

Records are never deleted; the final status doubles as an audit trail.

The payment workers follow read-then-write: read the record here, then issue
a conditional write that re-checks the snapshot at commit time.
"""
from __future__ import annotations

from enum import Enum
from typing import ClassVar

from botocore.exceptions import BotoCoreError, ClientError

from .dynamodb import decimal_to_python, get_table, serialize_item, warehouse_table_name
from .errors import ErrorKind, WarehouseError
from .events import WarehouseEvent
from .keys import order_allocation_key
from .logger import get_logger
from .models import OrderId, Price, Sku, Timestamp, Units, UserId, WarehouseModel, utc_now

logger = get_logger(__name__)


class AllocationStatus(str, Enum):
    ALLOCATED = "ALLOCATED"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    COMPLETED_PAYMENT_ACCEPTED = "COMPLETED_PAYMENT_ACCEPTED"


class OrderAllocation(WarehouseModel):
    order_id: OrderId
    sku: Sku
    units: Units
    price: Price
    user_id: UserId
    allocation_status: AllocationStatus
    created_at: Timestamp
    updated_at: Timestamp


class GetOrderAllocationCommand(WarehouseModel):
    order_id: OrderId
    sku: Sku


class OrderAllocationReader:
    def __init__(self, table=None):
        self._table = table if table is not None else get_table(warehouse_table_name())

    def get_order_allocation(self, command: GetOrderAllocationCommand) -> OrderAllocation | None:
        """Strongly consistent read. Returns None when the order was never allocated."""
        key = order_allocation_key(command.sku, command.order_id)
        try:
            resp = self._table.get_item(Key=key, ConsistentRead=True)
        except (ClientError, BotoCoreError) as e:
            logger.exception("Order allocation read failed", extra={"key": key["pk"]})
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e

        item = resp.get("Item")
        if not item:
            logger.info("Order allocation not found", extra={"key": key["pk"]})
            return None
        return OrderAllocation.validate_and_build(decimal_to_python(item))


# ---------------------------------------------------------------------------
# Status transitions out of ALLOCATED (payment rejected / payment accepted)
# ---------------------------------------------------------------------------

class TransitionOrderAllocationCommand(WarehouseModel):
    """
    Move one allocation out of ALLOCATED. Built from the record just read and
    the incoming payment event; `units` comes from the snapshot so the write
    can re-check it at commit time.
    """
    target_status: ClassVar[AllocationStatus]

    order_id: OrderId
    sku: Sku
    units: Units
    updated_at: Timestamp
    allocation_status: AllocationStatus
    expected_allocation_status: AllocationStatus = AllocationStatus.ALLOCATED

    @classmethod
    def from_existing_allocation(cls, existing_allocation: OrderAllocation | None, incoming_event: WarehouseEvent):
        if existing_allocation is None:
            raise WarehouseError(
                ErrorKind.INVALID_ARGUMENTS,
                f"{cls.__name__} requires an existing order allocation",
            )
        return cls.validate_and_build({
            "orderId": incoming_event.event_data.order_id,
            "sku": incoming_event.event_data.sku,
            "units": existing_allocation.units,
            "updatedAt": utc_now(),
            "allocationStatus": cls.target_status,
        })


def build_allocation_status_update(command: TransitionOrderAllocationCommand, table_name: str) -> dict:
    """Low-level Update body: set the new status IF the record still matches the snapshot."""
    return {
        "TableName": table_name,
        "Key": serialize_item(order_allocation_key(command.sku, command.order_id)),
        "UpdateExpression": "SET #allocationStatus = :newAllocationStatus, #updatedAt = :updatedAt",
        "ConditionExpression": (
            "attribute_exists(pk) AND attribute_exists(sk) AND "
            "#orderId = :orderId AND #sku = :sku AND #units = :units AND "
            "#allocationStatus = :expectedAllocationStatus"
        ),
        "ExpressionAttributeNames": {
            "#orderId": "orderId",
            "#sku": "sku",
            "#units": "units",
            "#updatedAt": "updatedAt",
            "#allocationStatus": "allocationStatus",
        },
        "ExpressionAttributeValues": serialize_item({
            ":orderId": command.order_id,
            ":sku": command.sku,
            ":units": command.units,
            ":updatedAt": command.updated_at,
            ":newAllocationStatus": command.allocation_status.value,
            ":expectedAllocationStatus": command.expected_allocation_status.value,
        }),
    }
