# app/models/shipping.py
import uuid

from sqlmodel import SQLModel, Field


class ShippingMethod(SQLModel, table=True):
    """
    Carrier option offered at checkout.

    Cost model (see services/shipping_estimator.py):
      base_fee + weight * per_kg_fee + distance surcharge
    where the distance surcharge only applies when `distance_multiplier`
    is set and the destination supplies a distance.
    """

    __tablename__ = "shipping_methods"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=100)
    description: str | None = None

    base_fee_cents: int = Field(default=0, ge=0)
    per_kg_fee_cents: int = Field(default=0, ge=0)
    distance_multiplier: float | None = Field(default=None, ge=0)

    estimated_days: int | None = Field(default=None, ge=0)
