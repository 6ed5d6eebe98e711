"""
Completion Worker Lambda Handler
================================
SQS-triggered. Each record carries an ORDER_PAYMENT_ACCEPTED_EVENT; the
order's allocation becomes COMPLETED_PAYMENT_ACCEPTED.
"""
from __future__ import annotations

from aws_xray_sdk.core import patch_all, xray_recorder

from shared.allocations import OrderAllocationReader
from shared.events import IncomingOrderPaymentAcceptedEvent
from shared.sqs import parse_record_body, process_batch
from .repository import CompletionRepository
from .service import CompleteOrderPaymentAcceptedService

# Patch boto3 clients for X-Ray distributed tracing
patch_all()

from shared.logger import get_logger
logger = get_logger(__name__)


def handler(event: dict, context) -> dict:
    return process_batch(event, _process_record)


def _process_record(record: dict) -> None:
    incoming_event = IncomingOrderPaymentAcceptedEvent.from_eventbridge_event(parse_record_body(record))

    with xray_recorder.in_subsegment("complete_order_allocation"):
        _service().complete_order(incoming_event)

    logger.info("Completion record processed", extra={"message_id": record.get("messageId")})


def _service() -> CompleteOrderPaymentAcceptedService:
    return CompleteOrderPaymentAcceptedService(OrderAllocationReader(), CompletionRepository())
