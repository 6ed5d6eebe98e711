"""
Event Store: Write-Once Domain Events
=====================================
Each (subject, eventName) pair can be written exactly once. The write is a
single conditional PutItem (`attribute_not_exists(pk)`), so two workers racing
to raise the same event cannot both succeed: the loser gets
DUPLICATE_EVENT_RAISED, which callers treat as "already done".

The event store table has a DynamoDB stream; inserting the item IS publishing
the event (stream → EventBridge Pipe → bus → rule → queue).
"""
from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError

from .dynamodb import event_store_table_name, get_table, is_conditional_check_failed, python_to_dynamodb
from .errors import ErrorKind, WarehouseError
from .events import WarehouseEvent
from .keys import EVENT_TYPE_NAME, event_sort_key
from .logger import get_logger

logger = get_logger(__name__)


class EventStore:
    def __init__(self, table=None):
        self._table = table if table is not None else get_table(event_store_table_name())

    def put_once(self, subject_key: str, event_name: str, payload: dict, lot_id: str | None = None) -> None:
        """
        Raises WarehouseError(DUPLICATE_EVENT_RAISED) if the event already exists,
        WarehouseError(UNRECOGNIZED) on any other store failure.
        """
        item = {
            "pk": subject_key,
            "sk": event_sort_key(event_name, lot_id),
            "_tn": EVENT_TYPE_NAME,
            **python_to_dynamodb(payload),
        }
        try:
            self._table.put_item(
                Item=item,
                ConditionExpression="attribute_not_exists(pk) AND attribute_not_exists(sk)",
            )
        except ClientError as e:
            if is_conditional_check_failed(e):
                logger.info(
                    "Event already raised",
                    extra={"subject_key": subject_key, "event_name": event_name},
                )
                raise WarehouseError(
                    ErrorKind.DUPLICATE_EVENT_RAISED,
                    f"{event_name} already raised for {subject_key}",
                ) from e
            logger.exception("Event store write failed", extra={"subject_key": subject_key})
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e
        except BotoCoreError as e:
            logger.exception("Event store unreachable", extra={"subject_key": subject_key})
            raise WarehouseError(ErrorKind.UNRECOGNIZED) from e

        logger.info("Event raised", extra={"subject_key": subject_key, "event_name": event_name})

    def raise_event(self, event: WarehouseEvent) -> None:
        self.put_once(event.subject_key, event.event_name.value, event.to_item())
