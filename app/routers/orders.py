# app/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_auth
from app.core.config import get_settings
from app.core.results import raise_for_result
from app.database import get_session
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.order import (
    CheckoutRequest,
    CheckoutResult,
    OrderRead,
    OrderWithItemsRead,
)
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService

router = APIRouter(prefix="/orders", tags=["Orders"])

service = CheckoutService(
    CartService.from_settings(get_settings()),
    OrderRepository(),
    ProductRepository(),
)


# -------- User-facing endpoints --------


@router.post(
    "/checkout",
    response_model=CheckoutResult,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Create an order from the current user's active cart.

    Auth:
      - Authenticated users only; guest carts cannot check out.

    A cart that fails checkout validation returns 400 with the full
    validation report under `detail.report`.
    """
    return raise_for_result(service.checkout(session, current_user, payload))


@router.get(
    "/me",
    response_model=list[OrderRead],
)
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
):
    """
    List the current user's orders, newest first.
    """
    return service.list_orders(session, current_user, skip=skip, limit=limit)


@router.get(
    "/me/{order_id}",
    response_model=OrderWithItemsRead,
)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get one of the current user's orders with its items.
    """
    return raise_for_result(service.get_order(session, current_user, order_id))
