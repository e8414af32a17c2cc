# app/services/catalog_service.py
import logging
import uuid
from typing import Mapping

from sqlmodel import Session

from app.core.results import ServiceResult
from app.models.product import Product, ProductVariant
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductDetail, ProductRead, VariantRead
from app.services import inventory_guard, variant_options
from app.services.price_formatter import format_price, price_range


class CatalogService:
    """
    Read-side catalog logic.

    Responsibilities:
      - product listing with price ranges
      - product detail with schema-ordered variant options
      - variant lookup by option values
    """

    def __init__(
        self,
        repo: ProductRepository,
        low_stock_threshold: int = inventory_guard.DEFAULT_LOW_STOCK_THRESHOLD,
        logger: logging.Logger | None = None,
    ):
        self.repo = repo
        self.low_stock_threshold = low_stock_threshold
        self.log = logger or logging.getLogger(__name__)

    # ----- DTO builders -----

    def build_variant_read(self, product: Product, variant: ProductVariant) -> VariantRead:
        return VariantRead(
            id=variant.id,
            product_id=variant.product_id,
            sku=variant.sku,
            price_cents=variant.price_cents,
            price=format_price(variant.price_cents),
            stock_quantity=variant.stock_quantity,
            in_stock=inventory_guard.in_stock(variant),
            low_stock=inventory_guard.low_stock(variant, self.low_stock_threshold),
            weight_kg=variant.weight_kg,
            options=variant_options.ordered_options(product.option_names, variant.options),
        )

    @staticmethod
    def _product_read(product: Product, variants: list[ProductVariant]) -> dict:
        return dict(
            id=product.id,
            name=product.name,
            slug=product.slug,
            description=product.description,
            is_active=product.is_active,
            option_names=list(product.option_names),
            price_range=price_range(v.price_cents for v in variants),
            created_at=product.created_at,
        )

    # ----- public operations -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ProductRead]:
        products = self.repo.list_products(session, skip=skip, limit=limit, only_active=True)
        variants = self.repo.list_variants_for_products(session, (p.id for p in products))

        by_product: dict[uuid.UUID, list[ProductVariant]] = {}
        for variant in variants:
            by_product.setdefault(variant.product_id, []).append(variant)

        return [
            ProductRead(**self._product_read(p, by_product.get(p.id, [])))
            for p in products
        ]

    def get_product(self, session: Session, product_id: uuid.UUID) -> ServiceResult:
        product = self.repo.get_by_id(session, product_id)
        if not product or not product.is_active:
            return ServiceResult.not_found("Product not found")

        variants = self.repo.list_variants(session, product.id)
        detail = ProductDetail(
            **self._product_read(product, variants),
            variants=[self.build_variant_read(product, v) for v in variants],
            available_options=variant_options.available_options(product.option_names, variants),
        )
        return ServiceResult.success("Product retrieved", detail)

    def match_variant(
        self,
        session: Session,
        product_id: uuid.UUID,
        requested: Mapping[str, str],
    ) -> ServiceResult:
        """
        Find the variant matching the requested option values.

        Unknown or missing option names and blank values are a validation
        failure; a well-formed request that matches nothing is not found.
        """
        product = self.repo.get_by_id(session, product_id)
        if not product or not product.is_active:
            return ServiceResult.not_found("Product not found")

        errors = variant_options.validate_options(product.option_names, requested)
        if errors:
            return ServiceResult.invalid("Invalid options", errors)

        variants = self.repo.list_variants(session, product.id)
        variant = variant_options.find_by_options(variants, requested)
        if variant is None:
            return ServiceResult.not_found("No variant matches the selected options")

        return ServiceResult.success("Variant found", self.build_variant_read(product, variant))
