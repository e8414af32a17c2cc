# app/repositories/shipping_repo.py
import uuid

from sqlmodel import Session, select

from app.models.shipping import ShippingMethod


class ShippingMethodRepository:
    """Read access to configured shipping methods."""

    def get_by_id(self, session: Session, method_id: uuid.UUID) -> ShippingMethod | None:
        return session.get(ShippingMethod, method_id)

    def list_methods(self, session: Session) -> list[ShippingMethod]:
        stmt = select(ShippingMethod).order_by(ShippingMethod.name)
        return session.exec(stmt).all()
