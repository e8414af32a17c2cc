# app/repositories/product_repo.py
import uuid
from typing import Iterable

from sqlalchemy import update
from sqlmodel import Session, select

from app.models.product import Product, ProductVariant


class ProductRepository:
    """
    Data access layer for Product & ProductVariant.

    - Pure DB operations (queries + the atomic stock reservation).
    - No FastAPI, no business logic.
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        stmt = select(Product).where(Product.id.in_(ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Product.name).offset(skip).limit(limit)
        return session.exec(stmt).all()

    # ----- Variants -----

    def get_variant(self, session: Session, variant_id: uuid.UUID) -> ProductVariant | None:
        return session.get(ProductVariant, variant_id)

    def get_variants(
        self,
        session: Session,
        variant_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, ProductVariant]:
        ids = list(set(variant_ids))
        if not ids:
            return {}
        stmt = select(ProductVariant).where(ProductVariant.id.in_(ids))
        return {v.id: v for v in session.exec(stmt).all()}

    def list_variants(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> list[ProductVariant]:
        stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.created_at, ProductVariant.sku)
        )
        return session.exec(stmt).all()

    def list_variants_for_products(
        self,
        session: Session,
        product_ids: Iterable[uuid.UUID],
    ) -> list[ProductVariant]:
        ids = list(set(product_ids))
        if not ids:
            return []
        stmt = select(ProductVariant).where(ProductVariant.product_id.in_(ids))
        return session.exec(stmt).all()

    def reserve_stock(
        self,
        session: Session,
        variant_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Atomically take `quantity` units out of stock.

        UPDATE ... SET stock_quantity = stock_quantity - :q
        WHERE id = :id AND stock_quantity >= :q

        Returns False when stock is insufficient (nothing written).
        No commit here; checkout owns the transaction.
        """
        if quantity <= 0:
            return False

        stmt = (
            update(ProductVariant)
            .where(
                ProductVariant.id == variant_id,
                ProductVariant.stock_quantity >= quantity,
            )
            .values(stock_quantity=ProductVariant.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        return result.rowcount == 1
