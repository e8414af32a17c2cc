# app/schemas/validation.py
import uuid
from typing import Literal

from sqlmodel import SQLModel, Field


class ValidationCategory(SQLModel):
    """
    Result of one independently computed group of cart checks.
    """

    category: str
    valid: bool
    message: str
    errors: list[str] = Field(default_factory=list)


class ValidationSummary(SQLModel):
    total_categories: int
    valid_categories: int
    invalid_categories: int
    total_errors: int
    overall_status: Literal["valid", "invalid"]


class ValidationReport(SQLModel):
    """
    Aggregate of categories; overall_valid is the AND of all of them.
    Build through `from_categories` so the derived fields stay consistent.
    """

    overall_valid: bool
    checkout_ready: bool = False
    categories: list[ValidationCategory]
    summary: ValidationSummary

    @classmethod
    def from_categories(
        cls,
        categories: list[ValidationCategory],
        checkout: bool = False,
    ) -> "ValidationReport":
        valid_count = sum(1 for c in categories if c.valid)
        overall = valid_count == len(categories)
        return cls(
            overall_valid=overall,
            checkout_ready=checkout and overall,
            categories=categories,
            summary=ValidationSummary(
                total_categories=len(categories),
                valid_categories=valid_count,
                invalid_categories=len(categories) - valid_count,
                total_errors=sum(len(c.errors) for c in categories),
                overall_status="valid" if overall else "invalid",
            ),
        )

    @property
    def errors(self) -> list[str]:
        return [e for c in self.categories for e in c.errors]


class ValidationWarning(SQLModel):
    type: Literal["low_stock", "high_quantity"]
    item_id: uuid.UUID | None
    product_name: str
    message: str
    severity: Literal["warning", "info"]
