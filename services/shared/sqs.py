"""
SQS Batch Processing
====================
Every worker is an SQS-triggered Lambda with ReportBatchItemFailures on.
Records are processed one by one; the return value tells SQS which ones to
redeliver:

  transient failure      → listed in batchItemFailures, redelivered later
  non-transient failure  → not listed, deleted from the queue
  success                → not listed

A poison message therefore costs one invocation, not maxReceiveCount of them.
See: https://docs.aws.amazon.com/lambda/latest/dg/with-sqs.html
"""
from __future__ import annotations

import json
from typing import Any, Callable

from .errors import ErrorKind, WarehouseError, is_transient_error
from .logger import get_logger

logger = get_logger(__name__)


def process_batch(event: Any, process_record: Callable[[dict], Any]) -> dict:
    failures = []

    records = event.get("Records") if isinstance(event, dict) else None
    if not isinstance(records, list):
        logger.error("Expected an SQS event with Records", extra={"sqs_event": event})
        return {"batchItemFailures": failures}

    for record in records:
        message_id = record.get("messageId") if isinstance(record, dict) else None
        try:
            process_record(record)
        except Exception as exc:
            if is_transient_error(exc):
                logger.exception("Transient failure, record will be retried", extra={"message_id": message_id})
                failures.append({"itemIdentifier": message_id})
            else:
                logger.warning(
                    "Non-transient failure, record dropped",
                    extra={"message_id": message_id, "error": exc},
                )

    logger.info(
        "SQS batch processed",
        extra={"records": len(records), "batch_item_failures": len(failures)},
    )
    return {"batchItemFailures": failures}


def parse_record_body(record: dict) -> Any:
    """JSON body of an SQS record; a malformed body is never worth retrying."""
    try:
        return json.loads(record["body"])
    except (KeyError, TypeError, ValueError) as e:
        raise WarehouseError(ErrorKind.INVALID_ARGUMENTS, "SQS record body is not valid JSON") from e
