"""
Allocate Order Stock Service
============================
The allocation state machine for one (order, sku):

  RECEIVED ──▶ ALLOCATING ──┬─ committed ──────────▶ raise ORDER_STOCK_ALLOCATED
                            ├─ duplicate allocation ▶ raise ORDER_STOCK_ALLOCATED
                            └─ depleted stock ──────▶ raise ORDER_STOCK_DEPLETED

SQS delivers at-least-once, so the same order-created event can arrive twice,
possibly after a crash between the commit and the event raise. A duplicate
allocation is therefore a success: the event raise is retried, and the event
store answers "already raised" if it got that far last time. Depletion is a
business outcome, not a failure. Everything else propagates so the controller
can decide retry-or-drop.
"""
from __future__ import annotations

from enum import Enum

from shared.errors import ErrorKind, WarehouseError
from shared.event_store import EventStore
from shared.events import IncomingOrderCreatedEvent, OrderStockAllocatedEvent, OrderStockDepletedEvent
from shared.logger import get_logger

from .commands import AllocateOrderStockCommand
from .repository import AllocationRepository

logger = get_logger(__name__)


class AllocationOutcome(str, Enum):
    ALLOCATED = "ALLOCATED"
    ALREADY_ALLOCATED = "ALREADY_ALLOCATED"
    DEPLETED = "DEPLETED"


class AllocateOrderStockService:
    def __init__(self, repository: AllocationRepository, event_store: EventStore):
        self._repository = repository
        self._event_store = event_store

    def allocate_order_stock(self, incoming_event: IncomingOrderCreatedEvent) -> AllocationOutcome:
        log_extra = {"order_id": incoming_event.event_data.order_id, "sku": incoming_event.event_data.sku}
        logger.info("Allocating order stock", extra={"incoming_event": incoming_event})

        try:
            command = AllocateOrderStockCommand.from_incoming_event(incoming_event)
            self._repository.allocate_order_stock(command)
            outcome = AllocationOutcome.ALLOCATED
        except WarehouseError as e:
            if e.kind is ErrorKind.DUPLICATE_STOCK_ALLOCATION:
                outcome = AllocationOutcome.ALREADY_ALLOCATED
            elif e.kind is ErrorKind.DEPLETED_STOCK_ALLOCATION:
                outcome = AllocationOutcome.DEPLETED
            else:
                logger.error("Order stock allocation failed", extra={**log_extra, "error_kind": e.kind})
                raise

        if outcome is AllocationOutcome.DEPLETED:
            self._raise_event(OrderStockDepletedEvent.build(incoming_event.event_data))
        else:
            self._raise_event(OrderStockAllocatedEvent.build(incoming_event.event_data))

        logger.info("Order stock allocation finished", extra={**log_extra, "outcome": outcome})
        return outcome

    def _raise_event(self, event) -> None:
        try:
            self._event_store.raise_event(event)
        except WarehouseError as e:
            if e.kind is not ErrorKind.DUPLICATE_EVENT_RAISED:
                raise
            # a previous delivery got this far already
            logger.info(
                "Event was already raised",
                extra={"event_name": event.event_name, "subject_key": event.subject_key},
            )
