from storefront.data.models import ProductModel, UserModel
from storefront.data.seed import PRODUCTS, USERS, seed


def test_seeds_empty_database(session_factory):
    seed(session_factory)

    with session_factory() as s:
        assert s.query(UserModel).count() == len(USERS)
        assert s.query(ProductModel).count() == len(PRODUCTS)
        assert s.get(UserModel, 1).is_admin


def test_seed_is_idempotent(session_factory):
    seed(session_factory)
    seed(session_factory)

    with session_factory() as s:
        assert s.query(ProductModel).count() == len(PRODUCTS)
