# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import SessionLocal
from storefront.data.models import ProductModel, UserModel
from storefront.data.models.user import ROLE_ADMIN, ROLE_USER
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

USERS = [
    {"id": 1, "name": "Admin", "role": ROLE_ADMIN},
    {"id": 2, "name": "Demo Customer", "role": ROLE_USER},
]

PRODUCTS = [
    {"name": "Leather Wallet", "price": Decimal("49.99"), "stock_quantity": 25},
    {"name": "Leather Belt", "price": Decimal("35.00"), "stock_quantity": 40},
    {"name": "Messenger Bag", "price": Decimal("189.00"), "stock_quantity": 8},
]


def seed(session_factory=SessionLocal):
    db = session_factory()
    try:
        # only seed an empty database
        if db.query(ProductModel).first():
            logger.info("Seed skipped, products already present")
            return
        db.add_all(UserModel(**u) for u in USERS)
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(USERS)} users and {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    from storefront.main import init_db

    init_db()
    seed()
