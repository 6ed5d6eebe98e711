"""
Worker Handler Tests
====================
SQS partial batch failures: transient failures are reported back for
redelivery, everything else is dropped.
"""
import pytest

from shared.errors import ErrorKind, WarehouseError


def test_allocation_handler_processes_batch(warehouse_table, event_store_table, seed_sku, sku_units,
                                            make_order_event, make_sqs_event):
    from allocation_service.handler import handler

    seed_sku("SKU-BLUE-MUG", 5)
    event = make_sqs_event(
        make_order_event(order_id="order-0001", units=2),
        make_order_event(order_id="order-0002", units=2),
        make_order_event(order_id="order-0003", units=2),
    )

    result = handler(event, None)

    # The third order is depleted, which is an outcome, not a failure
    assert result == {"batchItemFailures": []}
    assert sku_units("SKU-BLUE-MUG") == 1
    assert event_store_table.scan()["Count"] == 3


def test_malformed_records_are_dropped(warehouse_table, seed_sku, sku_units, make_order_event, make_sqs_event):
    from allocation_service.handler import handler

    seed_sku("SKU-BLUE-MUG", 5)
    event = make_sqs_event(
        "{not json",
        make_order_event(units=0),
        make_order_event(event_name="ORDER_PAYMENT_ACCEPTED_EVENT"),
        make_order_event(units=1),
    )

    result = handler(event, None)

    assert result == {"batchItemFailures": []}
    assert sku_units("SKU-BLUE-MUG") == 4


def test_transient_failures_are_reported(monkeypatch, make_order_event, make_sqs_event):
    import allocation_service.handler as allocation_handler

    class _FlakyService:
        def __init__(self):
            self.calls = 0

        def allocate_order_stock(self, incoming_event):
            self.calls += 1
            if self.calls == 1:
                raise WarehouseError(ErrorKind.UNRECOGNIZED)
            if self.calls == 2:
                raise WarehouseError(ErrorKind.INVALID_ARGUMENTS)
            raise RuntimeError("unexpected crash")

    service = _FlakyService()
    monkeypatch.setattr(allocation_handler, "_service", lambda: service)
    event = make_sqs_event(make_order_event(), make_order_event(), make_order_event())
    ids = [record["messageId"] for record in event["Records"]]

    result = allocation_handler.handler(event, None)

    assert result == {"batchItemFailures": [{"itemIdentifier": ids[0]}, {"itemIdentifier": ids[2]}]}


@pytest.mark.parametrize("event", [{}, {"Records": None}, None, "garbage"])
def test_event_without_records_reports_nothing(event):
    from shared.sqs import process_batch

    def _never_called(record):
        raise AssertionError("no record to process")

    assert process_batch(event, _never_called) == {"batchItemFailures": []}


def test_deallocation_handler_returns_units(warehouse_table, seed_sku, sku_units, make_order_event, make_sqs_event):
    from allocation_service.handler import handler as allocation_handler
    from deallocation_service.handler import handler as deallocation_handler

    seed_sku("SKU-BLUE-MUG", 5)
    allocation_handler(make_sqs_event(make_order_event(order_id="order-0001", units=3)), None)
    assert sku_units("SKU-BLUE-MUG") == 2

    rejected = make_order_event(event_name="ORDER_PAYMENT_REJECTED_EVENT", order_id="order-0001", units=3)
    result = deallocation_handler(make_sqs_event(rejected, rejected), None)

    # The duplicate is rejected by the store and dropped, not retried
    assert result == {"batchItemFailures": []}
    assert sku_units("SKU-BLUE-MUG") == 5


def test_completion_handler_completes_allocation(warehouse_table, seed_sku, sku_units, make_order_event,
                                                 make_sqs_event):
    from allocation_service.handler import handler as allocation_handler
    from completion_service.handler import handler as completion_handler

    seed_sku("SKU-BLUE-MUG", 5)
    allocation_handler(make_sqs_event(make_order_event(order_id="order-0001", units=3)), None)

    accepted = make_order_event(event_name="ORDER_PAYMENT_ACCEPTED_EVENT", order_id="order-0001", units=3)
    result = completion_handler(make_sqs_event(accepted), None)

    assert result == {"batchItemFailures": []}
    assert sku_units("SKU-BLUE-MUG") == 2
    key = "SKU#SKU-BLUE-MUG#ORDER_ID#order-0001#ALLOCATION"
    item = warehouse_table.get_item(Key={"pk": key, "sk": key})["Item"]
    assert item["allocationStatus"] == "COMPLETED_PAYMENT_ACCEPTED"
