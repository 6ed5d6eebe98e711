"""
Validated Value Objects
=======================
Every message that crosses a boundary (SQS in, DynamoDB out) is a pydantic
model built through `validate_and_build`. Construction either yields a model
whose fields satisfy the rules below or raises a non-transient
INVALID_ARGUMENTS WarehouseError, so downstream code never re-checks shapes.

Field rules:
  order_id, sku, user_id   non-blank string, at least 4 chars after strip
  units                    strict int >= 1 (no bools, floats or "3")
  price                    strict number >= 0
  created_at, updated_at   non-blank string, at least 4 chars after strip

Wire names are camelCase (orderId, allocationStatus, ...) to match the stored
attribute names; Python code uses snake_case.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError
from pydantic.alias_generators import to_camel

from .errors import ErrorKind, WarehouseError
from .logger import get_logger

logger = get_logger(__name__)

_Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=4)]

OrderId = _Identifier
Sku = _Identifier
UserId = _Identifier
Timestamp = _Identifier
Units = Annotated[int, Field(strict=True, ge=1)]
Price = Annotated[float, Field(strict=True, ge=0)]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class WarehouseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    @classmethod
    def validate_and_build(cls, data: Any):
        """The only sanctioned way to build a model from untrusted input."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "%s validation failed",
                cls.__name__,
                extra={"errors": e.errors(include_url=False), "input": data},
            )
            raise WarehouseError(
                ErrorKind.INVALID_ARGUMENTS,
                f"Invalid {cls.__name__}: {e.error_count()} validation error(s)",
            ) from e

    def to_item(self) -> dict:
        """camelCase dict ready for DynamoDB (after python_to_dynamodb)."""
        return self.model_dump(by_alias=True, mode="json")
