"""
Allocation Worker Lambda Handler
================================
SQS-triggered. Each record carries an ORDER_CREATED_EVENT routed here by
EventBridge:

  SQS body → EventBridge event → detail.dynamodb.NewImage → IncomingOrderCreatedEvent

The handler is thin: unwrap → validate → AllocateOrderStockService. Retry or
drop is decided by shared.sqs.process_batch from the error's transience.
"""
from __future__ import annotations

from aws_xray_sdk.core import patch_all, xray_recorder

from shared.event_store import EventStore
from shared.events import IncomingOrderCreatedEvent
from shared.sqs import parse_record_body, process_batch
from .repository import AllocationRepository
from .service import AllocateOrderStockService

# Patch boto3 clients for X-Ray distributed tracing
patch_all()

from shared.logger import get_logger
logger = get_logger(__name__)


def handler(event: dict, context) -> dict:
    return process_batch(event, _process_record)


def _process_record(record: dict) -> None:
    eventbridge_event = parse_record_body(record)
    incoming_event = IncomingOrderCreatedEvent.from_eventbridge_event(eventbridge_event)

    with xray_recorder.in_subsegment("allocate_order_stock"):
        outcome = _service().allocate_order_stock(incoming_event)

    logger.info(
        "Allocation record processed",
        extra={"message_id": record.get("messageId"), "outcome": outcome},
    )


def _service() -> AllocateOrderStockService:
    # Built per record so table names follow the current environment
    return AllocateOrderStockService(AllocationRepository(), EventStore())
