# tests/test_cart_service.py
import uuid

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from app.core.results import GENERIC_ERROR_MESSAGE
from app.models.cart import Cart, CartItem
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.shipping_repo import ShippingMethodRepository
from app.schemas.cart import CartOwner
from app.services.cart_service import CartService

GUEST = CartOwner(session_id="guest-1")


def build_service(cart_repo=None) -> CartService:
    return CartService(
        cart_repo or CartRepository(),
        ProductRepository(),
        ShippingMethodRepository(),
    )


class StaleLookupCartRepository(CartRepository):
    """Misses the existing line once, as a request racing another insert would."""

    hide_existing = False

    def get_item(self, session, cart_id, variant_id):
        if self.hide_existing:
            self.hide_existing = False
            return None
        return super().get_item(session, cart_id, variant_id)


class StaleCartLookupRepository(CartRepository):
    """Misses the owner's active cart once, as a request racing a first add would."""

    hide_cart = False

    def get_active_for_owner(self, session, owner):
        if self.hide_cart:
            self.hide_cart = False
            return None
        return super().get_active_for_owner(session, owner)


class BrokenCartRepository(CartRepository):
    def create_item(self, session, item):
        raise SQLAlchemyError("disk on fire")


def test_increment_is_refused_past_stock(session, make_variant):
    service = build_service()
    variant = make_variant(stock_quantity=5)
    result = service.add_item(session, GUEST, variant.id, 3)
    item_id = result.data.cart_item.id

    repo = CartRepository()
    assert repo.increment_quantity(session, item_id, variant.id, 3) is False
    assert repo.increment_quantity(session, item_id, variant.id, 2) is True
    assert session.get(CartItem, item_id).quantity == 5


def test_set_quantity_rechecks_live_stock(session, make_variant):
    service = build_service()
    variant = make_variant(stock_quantity=5)
    item_id = service.add_item(session, GUEST, variant.id, 1).data.cart_item.id

    # stock drops after the line was created
    variant.stock_quantity = 2
    session.add(variant)
    session.commit()

    repo = CartRepository()
    assert repo.set_quantity(session, item_id, variant.id, 4) is False
    assert repo.set_quantity(session, item_id, variant.id, 2) is True


def test_concurrent_insert_falls_back_to_increment(session, make_variant):
    repo = StaleLookupCartRepository()
    service = build_service(repo)
    variant = make_variant(stock_quantity=10)
    service.add_item(session, GUEST, variant.id, 2)

    repo.hide_existing = True
    result = service.add_item(session, GUEST, variant.id, 3)

    assert result.ok
    assert result.data.cart_item.quantity == 5
    assert result.data.cart_summary.item_count == 1


def test_persistence_failure_returns_generic_error(session, make_variant):
    service = build_service(BrokenCartRepository())
    result = service.add_item(session, GUEST, make_variant().id, 1)

    assert result.kind == "error"
    assert result.message == GENERIC_ERROR_MESSAGE
    assert "disk" not in result.message


def test_get_cart_does_not_create_a_cart(session):
    service = build_service()
    result = service.get_cart(session, GUEST)
    assert result.ok
    assert result.data.id is None
    assert CartRepository().get_active_for_owner(session, GUEST) is None


def test_update_unknown_item_is_not_found(session, make_variant):
    service = build_service()
    assert service.update_item(session, GUEST, uuid.uuid4(), 1).kind == "not_found"
    assert service.remove_item(session, GUEST, uuid.uuid4()).kind == "not_found"


def test_mutations_touch_the_cart(session, make_variant):
    service = build_service()
    variant = make_variant()
    service.add_item(session, GUEST, variant.id, 1)
    cart = CartRepository().get_active_for_owner(session, GUEST)
    first_touch = cart.updated_at

    service.add_item(session, GUEST, variant.id, 1)
    session.refresh(cart)
    assert cart.updated_at >= first_touch


def carts_for(session, owner):
    return session.exec(select(Cart).where(Cart.session_id == owner.session_id)).all()


def test_owner_can_hold_only_one_active_cart(session):
    session.add(Cart(session_id="dup"))
    session.commit()

    session.add(Cart(session_id="dup"))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()

    # a closed cart does not count
    cart = session.exec(select(Cart).where(Cart.session_id == "dup")).one()
    cart.status = "abandoned"
    session.add(cart)
    session.commit()
    session.add(Cart(session_id="dup"))
    session.commit()


def test_concurrent_first_add_reuses_the_active_cart(session, make_variant):
    repo = StaleCartLookupRepository()
    service = build_service(repo)
    variant = make_variant(stock_quantity=10)
    first = service.add_item(session, GUEST, variant.id, 2)

    repo.hide_cart = True
    result = service.add_item(session, GUEST, variant.id, 3)

    assert result.ok
    assert result.data.cart_summary.id == first.data.cart_summary.id
    assert result.data.cart_item.quantity == 5
    assert len(carts_for(session, GUEST)) == 1


def test_rejected_add_does_not_open_a_cart(session, make_variant):
    service = build_service()
    result = service.add_item(session, GUEST, make_variant(stock_quantity=2).id, 3)

    assert result.kind == "validation"
    assert carts_for(session, GUEST) == []
