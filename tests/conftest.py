# tests/conftest.py
# Ensure project root (parent of tests) is on sys.path so `import app...` works,
# and configure the app for tests before anything imports its settings.
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from app.database import get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models.product import Product, ProductVariant  # noqa: E402
from app.models.shipping import ShippingMethod  # noqa: E402
from app.models.user import User  # noqa: E402


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    # No context manager: the lifespan (create_all on the real engine) stays off
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# ---- factories ----


@pytest.fixture
def make_product(session):
    def _make(name="Atom Tee", option_names=None, is_active=True) -> Product:
        product = Product(
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            is_active=is_active,
            option_names=option_names or [],
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_variant(session, make_product):
    def _make(
        price_cents=1000,
        stock_quantity=10,
        product=None,
        options=None,
        weight_kg=None,
        name="Atom Tee",
        is_active=True,
    ) -> ProductVariant:
        if product is None:
            product = make_product(
                name=name,
                option_names=list((options or {}).keys()),
                is_active=is_active,
            )
        variant = ProductVariant(
            product_id=product.id,
            sku=f"SKU-{uuid.uuid4().hex[:8].upper()}",
            price_cents=price_cents,
            stock_quantity=stock_quantity,
            weight_kg=weight_kg,
            options=options or {},
        )
        session.add(variant)
        session.commit()
        session.refresh(variant)
        return variant

    return _make


@pytest.fixture
def make_shipping_method(session):
    def _make(name="Standard", **fields) -> ShippingMethod:
        method = ShippingMethod(name=name, **fields)
        session.add(method)
        session.commit()
        session.refresh(method)
        return method

    return _make


# ---- auth helpers ----


def make_token(user_id: uuid.UUID, email: str = "shopper@example.com") -> str:
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(payload, os.environ["JWT_SECRET"], algorithm="HS256")


def auth_headers(user_id: uuid.UUID, email: str = "shopper@example.com") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth_headers(uuid.uuid4())


@pytest.fixture
def admin_headers(session) -> dict[str, str]:
    admin = User(id=uuid.uuid4(), email="admin@example.com", name="admin", role="admin")
    session.add(admin)
    session.commit()
    return auth_headers(admin.id, admin.email)
