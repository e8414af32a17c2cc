# app/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import Session, select

from app.models.cart import ALLOWED_CART_TRANSITIONS, Cart, CartItem
from app.models.product import ProductVariant
from app.schemas.cart import CartOwner


class CartRepository:
    """
    Data access layer for carts and cart_items.

    - Pure DB operations; no FastAPI, no business rules.
    - Quantity writes are conditional UPDATEs that re-check the variant's
      live stock_quantity inside the same statement, so two concurrent
      requests cannot both push a line past stock.
    """

    # ---- Carts ----

    def get_by_id(self, session: Session, cart_id: uuid.UUID) -> Cart | None:
        return session.get(Cart, cart_id)

    def get_active_for_owner(self, session: Session, owner: CartOwner) -> Cart | None:
        stmt = select(Cart).where(Cart.status == "active")
        if owner.user_id is not None:
            stmt = stmt.where(Cart.user_id == owner.user_id)
        else:
            stmt = stmt.where(Cart.session_id == owner.session_id)
        return session.exec(stmt.order_by(Cart.created_at)).first()

    def create(self, session: Session, cart: Cart) -> Cart:
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def touch(self, session: Session, cart: Cart) -> Cart:
        """Record activity on the cart (drives the abandonment sweep)."""
        cart.updated_at = datetime.now(timezone.utc)
        session.add(cart)
        session.commit()
        session.refresh(cart)
        return cart

    def mark_stale_abandoned(self, session: Session, cutoff: datetime) -> int:
        """
        active -> abandoned for carts idle since before `cutoff`.
        Single statement; a cart touched after the cutoff is left alone.
        """
        stmt = (
            update(Cart)
            .where(Cart.status == "active", Cart.updated_at < cutoff)
            .values(status="abandoned")
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount

    def transition_status(
        self,
        session: Session,
        cart_id: uuid.UUID,
        current: str,
        new: str,
    ) -> bool:
        """
        current -> new, only if the cart is still in `current`.
        No commit here; checkout owns the transaction.
        """
        if new not in ALLOWED_CART_TRANSITIONS.get(current, set()):
            raise ValueError(f"Invalid cart transition {current} -> {new}")

        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.status == current)
            .values(status=new, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return session.exec(stmt).rowcount == 1

    def list_by_status(self, session: Session, status: str, limit: int = 100) -> list[Cart]:
        stmt = (
            select(Cart)
            .where(Cart.status == status)
            .order_by(Cart.updated_at)
            .limit(limit)
        )
        return session.exec(stmt).all()

    # ---- Items ----

    def list_items(self, session: Session, cart_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
        )
        return session.exec(stmt).all()

    def get_item(
        self, session: Session, cart_id: uuid.UUID, variant_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id, CartItem.variant_id == variant_id
        )
        return session.exec(stmt).first()

    def get_item_in_cart(
        self, session: Session, cart_id: uuid.UUID, item_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(CartItem.id == item_id, CartItem.cart_id == cart_id)
        return session.exec(stmt).first()

    def create_item(self, session: Session, item: CartItem) -> CartItem:
        """
        Insert a new line. May raise IntegrityError if a concurrent request
        created the same (cart, variant) line first.
        """
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def increment_quantity(
        self,
        session: Session,
        item_id: uuid.UUID,
        variant_id: uuid.UUID,
        delta: int,
    ) -> bool:
        """
        quantity += delta, only if the result still fits in stock.
        Returns False (nothing written) when it would not.
        """
        stmt = (
            update(CartItem)
            .where(
                CartItem.id == item_id,
                CartItem.quantity + delta <= self._stock_of(variant_id),
            )
            .values(quantity=CartItem.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        return self._apply(session, stmt)

    def set_quantity(
        self,
        session: Session,
        item_id: uuid.UUID,
        variant_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        quantity = `quantity`, only if it fits in stock.
        """
        stmt = (
            update(CartItem)
            .where(
                CartItem.id == item_id,
                self._stock_of(variant_id) >= quantity,
            )
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return self._apply(session, stmt)

    def delete_item(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def clear_items(self, session: Session, cart_id: uuid.UUID) -> None:
        for row in self.list_items(session, cart_id):
            session.delete(row)
        session.commit()

    # ---- helpers ----

    @staticmethod
    def _stock_of(variant_id: uuid.UUID):
        return (
            select(ProductVariant.stock_quantity)
            .where(ProductVariant.id == variant_id)
            .scalar_subquery()
        )

    @staticmethod
    def _apply(session: Session, stmt) -> bool:
        result = session.exec(stmt)
        session.commit()
        return result.rowcount == 1
