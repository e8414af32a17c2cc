# tests/test_checkout.py
import uuid

from sqlalchemy import update
from sqlmodel import select

from app.models.cart import Cart
from app.models.order import Order
from app.models.product import ProductVariant
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.repositories.shipping_repo import ShippingMethodRepository
from app.schemas.cart import CartOwner
from app.schemas.order import CheckoutRequest
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService
from conftest import auth_headers

API = "/api/v1"


def add(client, headers, variant, quantity):
    res = client.post(
        f"{API}/cart/items",
        json={"variant_id": str(variant.id), "quantity": quantity},
        headers=headers,
    )
    assert res.status_code == 200
    return res.json()


def test_guest_cannot_checkout(client, make_variant):
    headers = {"X-Session-Id": "guest-1"}
    add(client, headers, make_variant(), 2)
    assert client.post(f"{API}/orders/checkout", json={}, headers=headers).status_code == 401


def test_checkout_reserves_stock_and_completes_cart(client, session, make_variant, user_headers):
    variant = make_variant(price_cents=1000, stock_quantity=5)
    cart_id = add(client, user_headers, variant, 2)["cart_summary"]["id"]

    res = client.post(f"{API}/orders/checkout", json={}, headers=user_headers)
    assert res.status_code == 201
    body = res.json()

    order = body["order"]
    assert order["status"] == "pending"
    assert order["subtotal_cents"] == 2000
    assert order["tax_cents"] == 175
    assert order["total_cents"] == 2175
    assert order["total"] == "$21.75"
    assert [(i["quantity"], i["unit_price_cents"]) for i in order["items"]] == [(2, 1000)]
    assert body["totals"]["total_cents"] == 2175

    session.refresh(variant)
    assert variant.stock_quantity == 3
    assert session.get(Cart, uuid.UUID(cart_id)).status == "completed"

    # the next read sees no active cart
    assert client.get(f"{API}/cart", headers=user_headers).json()["items"] == []


def test_checkout_with_shipping_and_codes(client, make_variant, make_shipping_method, user_headers):
    method = make_shipping_method(name="Standard", base_fee_cents=500)
    add(client, user_headers, make_variant(price_cents=4000, stock_quantity=5), 1)

    res = client.post(
        f"{API}/orders/checkout",
        json={"shipping_method_id": str(method.id), "discount_codes": ["save10"]},
        headers=user_headers,
    )
    assert res.status_code == 201
    order = res.json()["order"]
    # 4000 - 400 = 3600, tax 315, shipping 500
    assert order["discount_cents"] == 400
    assert order["tax_cents"] == 315
    assert order["shipping_cents"] == 500
    assert order["total_cents"] == 4415
    assert order["shipping_method_id"] == str(method.id)


def test_invalid_cart_returns_report(client, make_variant, user_headers):
    add(client, user_headers, make_variant(price_cents=300), 1)

    res = client.post(f"{API}/orders/checkout", json={}, headers=user_headers)
    assert res.status_code == 400
    detail = res.json()["detail"]
    assert detail["message"] == "Cart is not ready for checkout"
    assert detail["report"]["overall_valid"] is False
    assert any("Minimum order" in e for e in detail["errors"])


def test_empty_cart_cannot_check_out(client, user_headers):
    res = client.post(f"{API}/orders/checkout", json={}, headers=user_headers)
    assert res.status_code == 400
    assert "Cart is empty" in res.json()["detail"]["errors"]


def test_checkout_payload_rejects_unknown_fields(client, user_headers):
    res = client.post(f"{API}/orders/checkout", json={"total": 1}, headers=user_headers)
    assert res.status_code == 422


def test_orders_are_private(client, make_variant, user_headers):
    add(client, user_headers, make_variant(price_cents=1500), 1)
    order_id = client.post(f"{API}/orders/checkout", json={}, headers=user_headers).json()["order"]["id"]

    mine = client.get(f"{API}/orders/me", headers=user_headers).json()
    assert [o["id"] for o in mine] == [order_id]
    assert client.get(f"{API}/orders/me/{order_id}", headers=user_headers).status_code == 200

    stranger = auth_headers(uuid.uuid4(), "stranger@example.com")
    assert client.get(f"{API}/orders/me/{order_id}", headers=stranger).status_code == 404
    assert client.get(f"{API}/orders/me", headers=stranger).json() == []


class ContendedProductRepository(ProductRepository):
    """Another checkout empties `variant_id` just before this one reserves it."""

    def __init__(self, variant_id):
        self.variant_id = variant_id

    def reserve_stock(self, session, variant_id, quantity):
        if variant_id == self.variant_id:
            session.exec(
                update(ProductVariant)
                .where(ProductVariant.id == variant_id)
                .values(stock_quantity=0)
                .execution_options(synchronize_session=False)
            )
        return super().reserve_stock(session, variant_id, quantity)


def test_failed_reservation_rolls_back_everything(session, make_variant):
    user = User(id=uuid.uuid4(), email="racer@example.com", name="racer")
    session.add(user)
    session.commit()

    cart_service = CartService(CartRepository(), ProductRepository(), ShippingMethodRepository())
    first = make_variant(price_cents=1000, stock_quantity=5)
    second = make_variant(price_cents=1000, stock_quantity=5)
    owner = CartOwner(user_id=user.id)
    cart_service.add_item(session, owner, first.id, 1)
    cart_service.add_item(session, owner, second.id, 1)

    checkout = CheckoutService(cart_service, OrderRepository(), ContendedProductRepository(second.id))
    result = checkout.checkout(session, user, CheckoutRequest())

    assert result.kind == "validation"
    assert result.errors == ["Atom Tee: not enough stock to complete checkout"]

    session.refresh(first)
    session.refresh(second)
    assert first.stock_quantity == 5
    assert second.stock_quantity == 5
    assert session.exec(select(Order)).all() == []
    assert cart_service.cart_repo.get_active_for_owner(session, owner) is not None


class RecordingProductRepository(ProductRepository):
    def __init__(self):
        self.reserved = []

    def reserve_stock(self, session, variant_id, quantity):
        self.reserved.append(variant_id)
        return super().reserve_stock(session, variant_id, quantity)


def test_stock_is_reserved_in_variant_id_order(session, make_variant):
    user = User(id=uuid.uuid4(), email="orderly@example.com", name="orderly")
    session.add(user)
    session.commit()

    cart_service = CartService(CartRepository(), ProductRepository(), ShippingMethodRepository())
    owner = CartOwner(user_id=user.id)
    variants = [make_variant(price_cents=1000, stock_quantity=5) for _ in range(3)]
    # cart lines in the reverse of the id order
    for variant in sorted(variants, key=lambda v: v.id, reverse=True):
        cart_service.add_item(session, owner, variant.id, 1)

    products = RecordingProductRepository()
    result = CheckoutService(cart_service, OrderRepository(), products).checkout(
        session, user, CheckoutRequest()
    )

    assert result.ok
    assert products.reserved == sorted(v.id for v in variants)
