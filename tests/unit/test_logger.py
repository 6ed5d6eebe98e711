"""The JSON log line is what CloudWatch Logs Insights queries; its shape is a contract."""
import json
import logging
import sys
from decimal import Decimal

from shared.allocations import AllocationStatus
from shared.errors import ErrorKind, WarehouseError
from shared.logger import _JsonFormatter, get_logger
from shared.models import WarehouseModel


class _Sample(WarehouseModel):
    order_id: str


def _format(monkeypatch, exc_info=None, **extra):
    monkeypatch.setenv("SERVICE_NAME", "allocation-worker")
    record = logging.LogRecord("allocation_service.service", logging.INFO, __file__, 1, "Stock %s", ("allocated",),
                               exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(_JsonFormatter().format(record))


def test_log_line_carries_standard_fields_and_extras(monkeypatch):
    line = _format(monkeypatch, order_id="order-1234", units=Decimal("3"))

    assert line["level"] == "INFO"
    assert line["service"] == "allocation-worker"
    assert line["logger"] == "allocation_service.service"
    assert line["message"] == "Stock allocated"
    assert line["order_id"] == "order-1234"
    assert line["units"] == 3
    assert "pathname" not in line


def test_domain_values_are_rendered_as_json(monkeypatch):
    line = _format(
        monkeypatch,
        status=AllocationStatus.ALLOCATED,
        kind=ErrorKind.UNRECOGNIZED,
        model=_Sample(order_id="order-1234"),
        error=WarehouseError(ErrorKind.INVALID_ARGUMENTS, "bad sku"),
    )

    assert line["status"] == "ALLOCATED"
    assert line["kind"] == "UNRECOGNIZED"
    assert line["model"] == {"orderId": "order-1234"}
    assert "INVALID_ARGUMENTS" in line["error"]


def test_trace_id_and_exception_are_included(monkeypatch):
    monkeypatch.setenv("_X_AMZN_TRACE_ID", "Root=1-5759e988-bd862e3fe1be46a994272793")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        line = _format(monkeypatch, exc_info=sys.exc_info())

    assert line["xray_trace_id"].startswith("Root=1-")
    assert "RuntimeError: boom" in line["exception"]


def test_get_logger_returns_named_logger():
    logger = get_logger("deallocation_service.repository")
    assert logger.name == "deallocation_service.repository"
