# app/repositories/order_repo.py
import uuid

from sqlmodel import Session, select

from app.models.order import Order, OrderItem


class OrderRepository:
    """
    Orders written by checkout.

    Writes only flush: checkout reserves stock, completes the cart and
    places the order in one transaction and commits it itself.
    """

    def place(
        self,
        session: Session,
        order: Order,
        items: list[OrderItem],
    ) -> tuple[Order, list[OrderItem]]:
        session.add(order)
        session.flush()

        for item in items:
            item.order_id = order.id
        session.add_all(items)
        session.flush()

        session.refresh(order)
        return order, items

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def get_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> Order | None:
        stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
        return session.exec(stmt).first()

    def items_for(self, session: Session, order_id: uuid.UUID) -> list[OrderItem]:
        return session.exec(select(OrderItem).where(OrderItem.order_id == order_id)).all()
