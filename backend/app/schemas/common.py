"""Response envelope shared by every endpoint."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, model_serializer

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool
    data: DataT | None = None
    error: str | None = None
    message: str | None = None

    @model_serializer(mode="wrap")
    def drop_absent_keys(self, handler) -> dict[str, Any]:
        # Only top-level keys are dropped; nulls inside `data` are kept.
        dumped = handler(self)
        return {key: value for key, value in dumped.items() if value is not None}

    @classmethod
    def ok(cls, data: DataT, message: str | None = None) -> "ApiResponse[DataT]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def failure(cls, error: str, message: str | None = None) -> "ApiResponse[None]":
        return ApiResponse[None](success=False, error=error, message=message)
