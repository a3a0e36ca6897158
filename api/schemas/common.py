"""Common Pydantic schemas shared across the API."""

from datetime import datetime
from typing import Any, Generic, TypeVar, Optional
from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


class ORMModel(BaseModel):
    """Base for read schemas built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class ListResponse(BaseModel, Generic[T]):
    """List response wrapper."""

    items: list[T] = Field(description="Matching items")
    total: int = Field(ge=0, description="Number of items returned")

    @classmethod
    def of(cls, items: list[T]) -> "ListResponse[T]":
        return cls(items=items, total=len(items))


class TimestampMixin(BaseModel):
    """Mixin for timestamp fields."""

    created_at: datetime = Field(description="Timestamp when the resource was created")
    updated_at: datetime = Field(description="Timestamp when the resource was last updated")


class VersionedRead(ORMModel, TimestampMixin):
    """Fields every mutable workflow entity exposes."""

    id: str
    version: int = Field(description="Optimistic concurrency version")


class ErrorBody(BaseModel):
    """Error payload."""

    code: str = Field(description="Error code for programmatic handling")
    message: str = Field(description="Human readable message")
    path: Optional[str] = None
    method: Optional[str] = None
    details: Optional[dict[str, Any]] = Field(
        None, description="Structured details, e.g. the current entity state on conflicts"
    )


class ErrorResponse(BaseModel):
    """Error response model."""

    error: ErrorBody
