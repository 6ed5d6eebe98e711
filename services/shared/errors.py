"""
Warehouse Error Taxonomy
========================
Every failure a worker can see is a WarehouseError tagged with an ErrorKind.
The kind carries the only fact the SQS controllers care about: is it
transient? Transient failures are reported back to SQS and redelivered;
non-transient ones are dropped from the queue (or land in the DLQ for ops).

  INVALID_ARGUMENTS           malformed input, never retried
  UNRECOGNIZED                unclassified store/network failure, retried
  DUPLICATE_STOCK_ALLOCATION  allocation record already exists ("already done")
  DEPLETED_STOCK_ALLOCATION   not enough units, a business outcome
  DUPLICATE_EVENT_RAISED      event already in the event store ("already done")
  INVALID_STOCK_DEALLOCATION  allocation changed since it was read
  INVALID_STOCK_COMPLETION    allocation changed since it was read

Anything that is not a WarehouseError is an unclassified crash and is
treated as transient.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    UNRECOGNIZED = "UNRECOGNIZED"
    DUPLICATE_STOCK_ALLOCATION = "DUPLICATE_STOCK_ALLOCATION"
    DEPLETED_STOCK_ALLOCATION = "DEPLETED_STOCK_ALLOCATION"
    DUPLICATE_EVENT_RAISED = "DUPLICATE_EVENT_RAISED"
    INVALID_STOCK_DEALLOCATION = "INVALID_STOCK_DEALLOCATION"
    INVALID_STOCK_COMPLETION = "INVALID_STOCK_COMPLETION"

    @property
    def transient(self) -> bool:
        return self is ErrorKind.UNRECOGNIZED


_DEFAULT_MESSAGES = {
    ErrorKind.INVALID_ARGUMENTS: "Invalid arguments error.",
    ErrorKind.UNRECOGNIZED: "Unrecognized error.",
    ErrorKind.DUPLICATE_STOCK_ALLOCATION: "Duplicate stock allocation operation error.",
    ErrorKind.DEPLETED_STOCK_ALLOCATION: "Depleted stock allocation operation error.",
    ErrorKind.DUPLICATE_EVENT_RAISED: "Duplicate event raise operation error.",
    ErrorKind.INVALID_STOCK_DEALLOCATION: "Invalid stock deallocation operation error.",
    ErrorKind.INVALID_STOCK_COMPLETION: "Invalid stock completion operation error.",
}


class WarehouseError(Exception):
    """A classified failure. Raise with `from` to keep the boto3 cause attached."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        super().__init__(message or _DEFAULT_MESSAGES[kind])

    @property
    def transient(self) -> bool:
        return self.kind.transient

    def __repr__(self) -> str:
        return f"WarehouseError(kind={self.kind.value}, message={str(self)!r})"


def is_transient_error(exc: BaseException) -> bool:
    """Decide retry-or-drop for a failed SQS record."""
    if isinstance(exc, WarehouseError):
        return exc.transient
    return True
