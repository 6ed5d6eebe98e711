from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from shared.dynamodb import get_client, is_conditional_check_failed, warehouse_table_name
from shared.errors import ErrorKind, WarehouseError
from shared.logger import get_logger

from .commands import CompleteOrderPaymentAcceptedCommand, build_complete_order_allocation_update

logger = get_logger(__name__)


class CompletionRepository:
    def __init__(self, client=None, table_name: str | None = None):
        self._client = client if client is not None else get_client()
        self._table_name = table_name or warehouse_table_name()

    def complete_order_allocation(self, command: CompleteOrderPaymentAcceptedCommand) -> None:
        """
        Raises WarehouseError(INVALID_STOCK_COMPLETION) when the allocation is no
        longer the ALLOCATED record that was read, UNRECOGNIZED otherwise.
        """
        log_extra = {"order_id": command.order_id, "sku": command.sku}
        try:
            self._client.update_item(**build_complete_order_allocation_update(command, self._table_name))
        except ClientError as e:
            if is_conditional_check_failed(e):
                logger.warning("Order allocation completion rejected", extra=log_extra)
                raise WarehouseError(
                    ErrorKind.INVALID_STOCK_COMPLETION,
                    f"Order allocation {command.order_id} can no longer be completed",
                ) from e
            logger.exception("Order allocation completion failed", extra=log_extra)
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e
        except BotoCoreError as e:
            logger.exception("Order allocation completion could not reach DynamoDB", extra=log_extra)
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e

        logger.info("Order allocation completed", extra=log_extra)
