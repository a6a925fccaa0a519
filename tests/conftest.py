import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base, make_engine
from storefront.data.models import CartItemModel, CartModel, OrderModel, ProductModel, UserModel
from storefront.data.models.user import ROLE_ADMIN, ROLE_USER
from storefront.domain.context import RequestContext

CUSTOMER_ID = 2
OTHER_CUSTOMER_ID = 3
ADMIN_ID = 1


class RecordingNotifications:
    """Stands in for the Celery-backed NotificationService."""

    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id, order_number, event, status):
        self.sent.append((user_id, order_number, event, status))
        return True


@pytest.fixture()
def engine(tmp_path):
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'storefront.db'}"
    eng = make_engine(url)
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def users(db):
    db.add_all(
        [
            UserModel(id=ADMIN_ID, name="Admin", role=ROLE_ADMIN),
            UserModel(id=CUSTOMER_ID, name="Customer", role=ROLE_USER),
            UserModel(id=OTHER_CUSTOMER_ID, name="Other customer", role=ROLE_USER),
        ]
    )
    db.commit()


@pytest.fixture()
def customer(users):
    return RequestContext(user_id=CUSTOMER_ID)


@pytest.fixture()
def other_customer(users):
    return RequestContext(user_id=OTHER_CUSTOMER_ID)


@pytest.fixture()
def admin(users):
    return RequestContext(user_id=ADMIN_ID, is_admin=True)


@pytest.fixture()
def notifications():
    return RecordingNotifications()


def make_product(db, name, price, stock):
    product = ProductModel(name=name, price=Decimal(price), stock_quantity=stock)
    db.add(product)
    db.commit()
    return product


def fill_cart(db, user_id, lines):
    """Put ``[(product, quantity), ...]`` into the user's cart."""
    cart = db.query(CartModel).filter(CartModel.user_id == user_id).one_or_none()
    if cart is None:
        cart = CartModel(user_id=user_id, version=1)
        db.add(cart)
        db.flush()
    for product, quantity in lines:
        db.add(CartItemModel(cart_id=cart.id, product_id=product.id, quantity=quantity))
    db.commit()
    db.expire(cart)
    return cart


def stock_of(session_factory, product_id):
    with session_factory() as s:
        return s.get(ProductModel, product_id).stock_quantity


def cart_size(session_factory, user_id):
    with session_factory() as s:
        return (
            s.query(CartItemModel)
            .join(CartModel, CartModel.id == CartItemModel.cart_id)
            .filter(CartModel.user_id == user_id)
            .count()
        )


def order_count(session_factory):
    with session_factory() as s:
        return s.query(OrderModel).count()
