# storefront/repos/product_repo.py
from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_fresh(self, product_id: int) -> ProductModel | None:
        # bypass the identity map, stock may have moved under us
        return self.db.get(ProductModel, product_id, populate_existing=True)

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        UPDATE products SET stock_quantity = stock_quantity - :n
        WHERE id = :id AND stock_quantity >= :n

        The row stays locked until the surrounding transaction ends.
        Returns the number of rows hit (0 or 1).
        """
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock_quantity >= quantity,
            )
            .values(stock_quantity=ProductModel.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire_stock(product_id)
        return result.rowcount

    def increment_stock(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock_quantity=ProductModel.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        self._expire_stock(product_id)
        return result.rowcount

    def _expire_stock(self, product_id: int) -> None:
        loaded = self.db.identity_map.get(identity_key(ProductModel, product_id))
        if loaded is not None:
            self.db.expire(loaded, ["stock_quantity"])
