"""
Event and model validation.
Every rejected input must surface as a non-transient INVALID_ARGUMENTS error.
"""
import pytest

from shared.dynamodb import serialize_item
from shared.errors import ErrorKind, WarehouseError
from shared.events import (
    IncomingOrderCreatedEvent,
    IncomingOrderPaymentRejectedEvent,
    OrderStockAllocatedEvent,
    OrderStockDepletedEvent,
    WarehouseEventName,
)
from shared.keys import event_sort_key, order_allocation_key, sku_key


def _eventbridge(item):
    return {"detail": {"dynamodb": {"NewImage": serialize_item(item)}}}


def test_valid_order_created_event_is_built(make_order_event):
    raw = make_order_event(order_id="order-1234", units=3, price=19.99)

    event = IncomingOrderCreatedEvent.from_eventbridge_event(_eventbridge(raw))

    assert event.event_name is WarehouseEventName.ORDER_CREATED_EVENT
    assert event.event_data.order_id == "order-1234"
    assert event.event_data.units == 3
    assert event.event_data.price == pytest.approx(19.99)
    assert event.subject_key == "ORDER_ID#order-1234"


def test_identifiers_are_stripped(make_order_event):
    raw = make_order_event(order_id="  order-1234  ")
    event = IncomingOrderCreatedEvent.validate_and_build(raw)
    assert event.event_data.order_id == "order-1234"


@pytest.mark.parametrize("field, value", [
    ("orderId", "abc"),
    ("orderId", "      "),
    ("sku", ""),
    ("userId", None),
    ("units", 0),
    ("units", -1),
    ("units", "3"),
    ("units", 2.5),
    ("units", True),
    ("price", -0.01),
    ("price", "19.99"),
])
def test_invalid_event_data_is_rejected(make_order_event, field, value):
    raw = make_order_event()
    raw["eventData"][field] = value

    with pytest.raises(WarehouseError) as exc_info:
        IncomingOrderCreatedEvent.validate_and_build(raw)

    assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENTS
    assert exc_info.value.transient is False


def test_wrong_event_name_is_rejected(make_order_event):
    raw = make_order_event(event_name="ORDER_PAYMENT_REJECTED_EVENT")

    with pytest.raises(WarehouseError) as exc_info:
        IncomingOrderCreatedEvent.from_eventbridge_event(_eventbridge(raw))
    assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENTS

    # The same item is fine for the worker it was meant for
    event = IncomingOrderPaymentRejectedEvent.from_eventbridge_event(_eventbridge(raw))
    assert event.event_name is WarehouseEventName.ORDER_PAYMENT_REJECTED_EVENT


@pytest.mark.parametrize("envelope", [
    None,
    "not-a-dict",
    {},
    {"detail": {}},
    {"detail": {"dynamodb": {}}},
    {"detail": {"dynamodb": {"NewImage": "garbage"}}},
])
def test_malformed_envelope_is_rejected(envelope):
    with pytest.raises(WarehouseError) as exc_info:
        IncomingOrderCreatedEvent.from_eventbridge_event(envelope)
    assert exc_info.value.kind is ErrorKind.INVALID_ARGUMENTS


def test_missing_timestamps_are_rejected(make_order_event):
    raw = make_order_event()
    del raw["createdAt"]
    with pytest.raises(WarehouseError):
        IncomingOrderCreatedEvent.validate_and_build(raw)


def test_raised_events_carry_full_order_data(make_order_event):
    incoming = IncomingOrderCreatedEvent.validate_and_build(make_order_event(order_id="order-1234"))

    allocated = OrderStockAllocatedEvent.build(incoming.event_data)
    depleted = OrderStockDepletedEvent.build(incoming.event_data)

    assert allocated.event_name is WarehouseEventName.ORDER_STOCK_ALLOCATED_EVENT
    assert depleted.event_name is WarehouseEventName.ORDER_STOCK_DEPLETED_EVENT

    item = allocated.to_item()
    assert item["eventName"] == "ORDER_STOCK_ALLOCATED_EVENT"
    assert item["eventData"] == {
        "orderId": "order-1234",
        "sku": "SKU-BLUE-MUG",
        "units": 2,
        "price": 19.99,
        "userId": "user-0001",
    }
    assert item["createdAt"] == item["updatedAt"]


def test_key_layout():
    assert sku_key("ABCD") == {"pk": "SKU#ABCD", "sk": "SKU#ABCD"}
    assert order_allocation_key("ABCD", "order-1")["pk"] == "SKU#ABCD#ORDER_ID#order-1#ALLOCATION"
    assert event_sort_key("SKU_RESTOCKED_EVENT", "lot-9") == "EVENT#SKU_RESTOCKED_EVENT#LOT_ID#lot-9"
    assert event_sort_key("ORDER_CREATED_EVENT") == "EVENT#ORDER_CREATED_EVENT"
