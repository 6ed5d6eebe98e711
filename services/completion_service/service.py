from __future__ import annotations

from shared.allocations import GetOrderAllocationCommand, OrderAllocationReader
from shared.events import IncomingOrderPaymentAcceptedEvent
from shared.logger import get_logger

from .commands import CompleteOrderPaymentAcceptedCommand
from .repository import CompletionRepository

logger = get_logger(__name__)


class CompleteOrderPaymentAcceptedService:
    """Marks a paid order's allocation as completed. Same read-then-write as deallocation."""

    def __init__(self, reader: OrderAllocationReader, repository: CompletionRepository):
        self._reader = reader
        self._repository = repository

    def complete_order(self, incoming_event: IncomingOrderPaymentAcceptedEvent) -> None:
        data = incoming_event.event_data
        logger.info("Completing order allocation", extra={"incoming_event": incoming_event})

        get_command = GetOrderAllocationCommand.validate_and_build({"orderId": data.order_id, "sku": data.sku})
        existing_allocation = self._reader.get_order_allocation(get_command)

        command = CompleteOrderPaymentAcceptedCommand.from_existing_allocation(existing_allocation, incoming_event)
        self._repository.complete_order_allocation(command)
