# app/core/results.py
"""
Tagged service results.

Services never raise for expected failures. They return a ServiceResult
whose `kind` tells the caller what happened:

  ok          -> `data` holds the payload
  validation  -> user/cart-state problem, `errors` lists field-level details
  not_found   -> cart / item / variant / order does not exist for this owner
  error       -> unexpected persistence failure (message is generic)

Routers turn non-ok results into HTTPException via `raise_for_result`.
"""
from typing import Any, Literal

from fastapi import HTTPException, status
from sqlmodel import SQLModel, Field

ResultKind = Literal["ok", "validation", "not_found", "error"]

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."

_HTTP_STATUS: dict[str, int] = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceResult(SQLModel):
    kind: ResultKind = "ok"
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.kind == "ok"

    @classmethod
    def success(cls, message: str, data: Any = None) -> "ServiceResult":
        return cls(kind="ok", message=message, data=data)

    @classmethod
    def invalid(
        cls,
        message: str,
        errors: list[str] | None = None,
        data: Any = None,
    ) -> "ServiceResult":
        return cls(kind="validation", message=message, errors=errors or [], data=data)

    @classmethod
    def not_found(cls, message: str) -> "ServiceResult":
        return cls(kind="not_found", message=message)

    @classmethod
    def internal_error(cls, message: str = GENERIC_ERROR_MESSAGE) -> "ServiceResult":
        return cls(kind="error", message=message)


def raise_for_result(result: ServiceResult) -> Any:
    """
    Return `result.data` for ok results, otherwise raise the matching
    HTTPException with a {"message", "errors"} detail body.
    """
    if result.ok:
        return result.data

    detail: dict[str, Any] = {"message": result.message, "errors": result.errors}
    # Validation reports travel with the 400 so clients can render categories
    if result.kind == "validation" and result.data is not None:
        detail["report"] = jsonable(result.data)

    raise HTTPException(status_code=_HTTP_STATUS[result.kind], detail=detail)


def jsonable(value: Any) -> Any:
    if isinstance(value, SQLModel):
        return value.model_dump(mode="json")
    return value
