"""
Deallocation Repository
=======================
Runs the compensating transaction. Any item failing its condition means the
allocation moved since it was read (already compensated, completed, or a
stale snapshot): INVALID_STOCK_DEALLOCATION, never retried. A cancellation
without a failed condition (TransactionConflict, throttling) is UNRECOGNIZED
and will be retried.
"""
from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from shared.dynamodb import CONDITIONAL_CHECK_FAILED, cancellation_reasons, get_client, warehouse_table_name
from shared.errors import ErrorKind, WarehouseError
from shared.logger import get_logger

from .commands import DeallocateOrderPaymentRejectedCommand, build_deallocate_order_stock_transaction

logger = get_logger(__name__)


class DeallocationRepository:
    def __init__(self, client=None, table_name: str | None = None):
        self._client = client if client is not None else get_client()
        self._table_name = table_name or warehouse_table_name()

    def deallocate_order_stock(self, command: DeallocateOrderPaymentRejectedCommand) -> None:
        transact_items = build_deallocate_order_stock_transaction(command, self._table_name)
        log_extra = {"order_id": command.order_id, "sku": command.sku, "units": command.units}

        try:
            self._client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            kind = classify_deallocation_failure(e)
            logger.warning("Stock deallocation rejected", extra={**log_extra, "error_kind": kind})
            raise WarehouseError(kind, f"Stock deallocation failed for order {command.order_id}: {kind.value}") from e
        except BotoCoreError as e:
            logger.exception("Stock deallocation could not reach DynamoDB", extra=log_extra)
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e

        logger.info("Stock deallocated", extra=log_extra)


def classify_deallocation_failure(error: ClientError) -> ErrorKind:
    reasons = cancellation_reasons(error)
    if any(reason.get("Code") == CONDITIONAL_CHECK_FAILED for reason in reasons):
        return ErrorKind.INVALID_STOCK_DEALLOCATION
    return ErrorKind.UNRECOGNIZED
