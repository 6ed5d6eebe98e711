"""
Deallocate Order Payment Rejected Service
=========================================
Read-then-write: load the allocation, then run a transaction whose conditions
re-check what was read. Nothing is decided from the snapshot alone; if the
record changed in between, the store rejects the write.
"""
from __future__ import annotations

from shared.allocations import GetOrderAllocationCommand, OrderAllocationReader
from shared.events import IncomingOrderPaymentRejectedEvent
from shared.logger import get_logger

from .commands import DeallocateOrderPaymentRejectedCommand
from .repository import DeallocationRepository

logger = get_logger(__name__)


class DeallocateOrderPaymentRejectedService:
    def __init__(self, reader: OrderAllocationReader, repository: DeallocationRepository):
        self._reader = reader
        self._repository = repository

    def deallocate_order_stock(self, incoming_event: IncomingOrderPaymentRejectedEvent) -> None:
        data = incoming_event.event_data
        logger.info("Deallocating order stock", extra={"incoming_event": incoming_event})

        get_command = GetOrderAllocationCommand.validate_and_build({"orderId": data.order_id, "sku": data.sku})
        existing_allocation = self._reader.get_order_allocation(get_command)

        command = DeallocateOrderPaymentRejectedCommand.from_existing_allocation(existing_allocation, incoming_event)
        self._repository.deallocate_order_stock(command)

        logger.info(
            "Order stock deallocation finished",
            extra={"order_id": data.order_id, "sku": data.sku, "units": command.units},
        )
