"""
StockFlow Event Schemas
=======================
Domain events are immutable facts stored once in the event store. A DynamoDB
stream on the event store feeds EventBridge, and EventBridge rules route each
eventName to a worker queue. What a worker receives is therefore:

  SQS record body → EventBridge event → detail.dynamodb.NewImage
                                         (event store item, attribute-value JSON)

`from_eventbridge_event` unwraps that envelope and validates the item against
the concrete event class, including its eventName.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

from pydantic import field_validator

from .dynamodb import deserialize_item
from .errors import ErrorKind, WarehouseError
from .keys import order_subject
from .models import OrderId, Price, Sku, Timestamp, Units, UserId, WarehouseModel, utc_now


class WarehouseEventName(str, Enum):
    ORDER_CREATED_EVENT = "ORDER_CREATED_EVENT"
    ORDER_STOCK_ALLOCATED_EVENT = "ORDER_STOCK_ALLOCATED_EVENT"
    ORDER_STOCK_DEPLETED_EVENT = "ORDER_STOCK_DEPLETED_EVENT"
    ORDER_PAYMENT_ACCEPTED_EVENT = "ORDER_PAYMENT_ACCEPTED_EVENT"
    ORDER_PAYMENT_REJECTED_EVENT = "ORDER_PAYMENT_REJECTED_EVENT"
    SKU_RESTOCKED_EVENT = "SKU_RESTOCKED_EVENT"


class OrderEventData(WarehouseModel):
    order_id: OrderId
    sku: Sku
    units: Units
    price: Price
    user_id: UserId


class WarehouseEvent(WarehouseModel):
    """
    Envelope shared by every order event.

    Subclasses pin `expected_event_name`; validation rejects any other name so
    a misrouted message can never be processed by the wrong worker.
    """
    expected_event_name: ClassVar[WarehouseEventName | None] = None

    event_name: WarehouseEventName
    event_data: OrderEventData
    created_at: Timestamp
    updated_at: Timestamp

    @field_validator("event_name")
    @classmethod
    def _check_event_name(cls, value: WarehouseEventName) -> WarehouseEventName:
        if cls.expected_event_name is not None and value is not cls.expected_event_name:
            raise ValueError(f"expected {cls.expected_event_name.value}, got {value.value}")
        return value

    @property
    def subject_key(self) -> str:
        return order_subject(self.event_data.order_id)

    @classmethod
    def from_eventbridge_event(cls, eventbridge_event: Any):
        try:
            new_image = eventbridge_event["detail"]["dynamodb"]["NewImage"]
            unverified_event = deserialize_item(new_image)
        except (KeyError, TypeError, AttributeError, ValueError, ArithmeticError) as e:
            raise WarehouseError(
                ErrorKind.INVALID_ARGUMENTS,
                f"Expected an EventBridge event carrying a DynamoDB NewImage for {cls.__name__}",
            ) from e
        return cls.validate_and_build(unverified_event)


# ---------------------------------------------------------------------------
# Incoming events (consumed by the workers)
# ---------------------------------------------------------------------------

class IncomingOrderCreatedEvent(WarehouseEvent):
    expected_event_name = WarehouseEventName.ORDER_CREATED_EVENT


class IncomingOrderPaymentRejectedEvent(WarehouseEvent):
    expected_event_name = WarehouseEventName.ORDER_PAYMENT_REJECTED_EVENT


class IncomingOrderPaymentAcceptedEvent(WarehouseEvent):
    expected_event_name = WarehouseEventName.ORDER_PAYMENT_ACCEPTED_EVENT


# ---------------------------------------------------------------------------
# Outgoing events (raised by the allocation worker)
# ---------------------------------------------------------------------------

class _RaisedOrderEvent(WarehouseEvent):
    @classmethod
    def build(cls, event_data: OrderEventData):
        now = utc_now()
        return cls.validate_and_build({
            "eventName": cls.expected_event_name,
            "eventData": event_data,
            "createdAt": now,
            "updatedAt": now,
        })


class OrderStockAllocatedEvent(_RaisedOrderEvent):
    expected_event_name = WarehouseEventName.ORDER_STOCK_ALLOCATED_EVENT


class OrderStockDepletedEvent(_RaisedOrderEvent):
    expected_event_name = WarehouseEventName.ORDER_STOCK_DEPLETED_EVENT
