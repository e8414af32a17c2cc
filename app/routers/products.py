# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from app.core.config import get_settings
from app.core.results import raise_for_result
from app.database import get_session
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductDetail, ProductRead, VariantRead
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = CatalogService(repo, low_stock_threshold=get_settings().LOW_STOCK_THRESHOLD)


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """
    List active products with their price ranges.

    - Public endpoint.
    """
    return service.list_products(session, skip=skip, limit=limit)


@router.get("/{product_id}", response_model=ProductDetail)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Product detail with variants and the available option values.

    - Public endpoint.
    """
    return raise_for_result(service.get_product(session, product_id))


@router.get("/{product_id}/variants/match", response_model=VariantRead)
def match_variant(
    product_id: uuid.UUID,
    request: Request,
    session: Session = Depends(get_session),
):
    """
    Resolve a variant from option values passed as query parameters,
    e.g. `?color=red&size=M`.
    """
    requested = dict(request.query_params)
    return raise_for_result(service.match_variant(session, product_id, requested))
