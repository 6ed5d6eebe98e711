"""
Deallocation Worker Lambda Handler
==================================
SQS-triggered. Each record carries an ORDER_PAYMENT_REJECTED_EVENT; the
allocated units go back to the SKU counter.
"""
from __future__ import annotations

from aws_xray_sdk.core import patch_all, xray_recorder

from shared.allocations import OrderAllocationReader
from shared.events import IncomingOrderPaymentRejectedEvent
from shared.sqs import parse_record_body, process_batch
from .repository import DeallocationRepository
from .service import DeallocateOrderPaymentRejectedService

# Patch boto3 clients for X-Ray distributed tracing
patch_all()

from shared.logger import get_logger
logger = get_logger(__name__)


def handler(event: dict, context) -> dict:
    return process_batch(event, _process_record)


def _process_record(record: dict) -> None:
    incoming_event = IncomingOrderPaymentRejectedEvent.from_eventbridge_event(parse_record_body(record))

    with xray_recorder.in_subsegment("deallocate_order_stock"):
        _service().deallocate_order_stock(incoming_event)

    logger.info("Deallocation record processed", extra={"message_id": record.get("messageId")})


def _service() -> DeallocateOrderPaymentRejectedService:
    return DeallocateOrderPaymentRejectedService(OrderAllocationReader(), DeallocationRepository())
