# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import get_cart_owner
from app.core.config import get_settings
from app.core.results import raise_for_result
from app.database import get_session
from app.schemas.cart import (
    CartItemCreate,
    CartItemMutation,
    CartItemUpdate,
    CartOwner,
    CartSummary,
)
from app.schemas.pricing import (
    CartTotals,
    FreeShippingEligibility,
    SavingsSummary,
    ShippingDestination,
    ShippingQuote,
)
from app.schemas.validation import ValidationReport, ValidationWarning
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

service = CartService.from_settings(get_settings())


def _destination(distance_km: float | None) -> ShippingDestination | None:
    if distance_km is None:
        return None
    return ShippingDestination(distance_km=distance_km)


# -------- Cart contents --------


@router.get("", response_model=CartSummary)
def get_my_cart(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    """
    Get the caller's active cart.

    Auth:
      - Bearer token (user cart) or X-Session-Id header (guest cart).
    """
    return raise_for_result(service.get_cart(session, owner))


@router.post("/items", response_model=CartItemMutation)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    """
    Add a variant to the cart. Creates the cart on first add.

    Returns the touched line and the updated cart summary.
    """
    return raise_for_result(
        service.add_item(session, owner, payload.variant_id, payload.quantity)
    )


@router.patch("/items/{item_id}", response_model=CartItemMutation)
def update_cart_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    """
    Set a line's quantity. Quantity 0 removes the line.
    """
    return raise_for_result(
        service.update_item(session, owner, item_id, payload.quantity)
    )


@router.delete("/items/{item_id}", response_model=CartSummary)
def remove_cart_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    return raise_for_result(service.remove_item(session, owner, item_id))


@router.delete("", response_model=CartSummary)
def clear_cart(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    """
    Remove every line from the cart and return an empty summary.
    """
    return raise_for_result(service.clear_cart(session, owner))


# -------- Pricing & checks --------


@router.get("/totals", response_model=CartTotals)
def get_cart_totals(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
    discount_codes: list[str] = Query(default=[]),
    shipping_method_id: uuid.UUID | None = None,
    distance_km: float | None = Query(default=None, ge=0),
):
    """
    Subtotal, stacked discounts, tax and (optionally) shipping.

    - `discount_codes` may be repeated: ?discount_codes=SAVE10&discount_codes=WELCOME20
    - unknown codes are reported back in `unrecognized_codes`
    """
    return raise_for_result(
        service.get_totals(
            session,
            owner,
            discount_codes=discount_codes,
            shipping_method_id=shipping_method_id,
            destination=_destination(distance_km),
        )
    )


@router.get("/validation", response_model=ValidationReport)
def validate_cart(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
    checkout: bool = False,
):
    """
    Validation report by category. `checkout=true` adds the checkout-only
    rules (readiness, minimum order, per-item limits).
    """
    return raise_for_result(service.validate(session, owner, checkout=checkout))


@router.get("/warnings", response_model=list[ValidationWarning])
def cart_warnings(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    return raise_for_result(service.warnings(session, owner))


@router.get("/shipping-options", response_model=list[ShippingQuote])
def shipping_options(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
    distance_km: float | None = Query(default=None, ge=0),
):
    """
    Quote every shipping method for the cart, cheapest first.
    """
    return raise_for_result(
        service.shipping_options(session, owner, _destination(distance_km))
    )


@router.get("/free-shipping", response_model=FreeShippingEligibility)
def free_shipping(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    return raise_for_result(service.free_shipping(session, owner))


@router.get("/savings", response_model=SavingsSummary)
def cart_savings(
    session: Session = Depends(get_session),
    owner: CartOwner = Depends(get_cart_owner),
):
    return raise_for_result(service.savings(session, owner))
