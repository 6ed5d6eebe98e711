"""
Allocation Repository
=====================
Executes the allocation plan as a single TransactWriteItems call and turns a
cancelled transaction into a domain outcome by reading the per-item
CancellationReasons:

  reason[0] ConditionalCheckFailed  → DUPLICATE_STOCK_ALLOCATION
  reason[1] ConditionalCheckFailed  → DEPLETED_STOCK_ALLOCATION
  anything else                     → UNRECOGNIZED (transient, retried)

The duplicate check runs first and wins when both items failed: if the
allocation record already exists, a previous delivery of this event already
committed, and whatever the counter looks like now is irrelevant. Reporting
"depleted" there would raise a depleted event for an order that holds stock.
"""
from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from shared.dynamodb import CONDITIONAL_CHECK_FAILED, get_client, transaction_cancellation_code, warehouse_table_name
from shared.errors import ErrorKind, WarehouseError
from shared.logger import get_logger

from .commands import (
    ALLOCATION_ITEM_INDEX,
    SKU_ITEM_INDEX,
    AllocateOrderStockCommand,
    build_allocate_order_stock_transaction,
)

logger = get_logger(__name__)


class AllocationRepository:
    def __init__(self, client=None, table_name: str | None = None):
        self._client = client if client is not None else get_client()
        self._table_name = table_name or warehouse_table_name()

    def allocate_order_stock(self, command: AllocateOrderStockCommand) -> None:
        transact_items = build_allocate_order_stock_transaction(command, self._table_name)
        log_extra = {"order_id": command.order_id, "sku": command.sku, "units": command.units}

        try:
            self._client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            kind = classify_allocation_failure(e)
            logger.warning("Stock allocation rejected", extra={**log_extra, "error_kind": kind})
            raise WarehouseError(kind, f"Stock allocation failed for order {command.order_id}: {kind.value}") from e
        except BotoCoreError as e:
            logger.exception("Stock allocation could not reach DynamoDB", extra=log_extra)
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e

        logger.info("Stock allocated", extra=log_extra)


def classify_allocation_failure(error: ClientError) -> ErrorKind:
    if transaction_cancellation_code(error, ALLOCATION_ITEM_INDEX) == CONDITIONAL_CHECK_FAILED:
        return ErrorKind.DUPLICATE_STOCK_ALLOCATION
    if transaction_cancellation_code(error, SKU_ITEM_INDEX) == CONDITIONAL_CHECK_FAILED:
        return ErrorKind.DEPLETED_STOCK_ALLOCATION
    return ErrorKind.UNRECOGNIZED
