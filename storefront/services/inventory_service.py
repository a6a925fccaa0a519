# storefront/services/inventory_service.py
from collections import defaultdict
from typing import Iterable

from sqlalchemy.orm import Session

from storefront.domain.errors import InsufficientStock, NotFound
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Inventory ledger: the only writer of ``products.stock_quantity``.

    Check and decrement are one conditional UPDATE, so two placements can
    never both pass the check for the same units. Nothing here commits;
    the caller's transaction decides whether the movement sticks.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def reserve(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        if self.repo.decrement_stock(product_id, quantity) == 1:
            logger.info(f"Reserved {quantity} x product {product_id}")
            return

        product = self.repo.get_fresh(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")

        logger.warning(
            f"Insufficient stock for product {product_id}: "
            f"available {product.stock_quantity}, requested {quantity}"
        )
        raise InsufficientStock(
            product_id=product.id,
            product_name=product.name,
            available=product.stock_quantity,
            requested=quantity,
        )

    def reserve_all(self, lines: Iterable) -> None:
        """
        Reserve every (product, quantity) line or raise on the first miss.

        Lines for the same product are summed and products are taken in
        ascending id order so concurrent placements lock rows in the same
        sequence.
        """
        wanted = defaultdict(int)
        for line in lines:
            wanted[line.product.id] += line.quantity

        for product_id in sorted(wanted):
            self.reserve(product_id, wanted[product_id])

    def release(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        if self.repo.increment_stock(product_id, quantity) == 0:
            raise NotFound(f"Product {product_id} not found")

        logger.info(f"Released {quantity} x product {product_id}")

    def release_all(self, items: Iterable) -> None:
        restored = defaultdict(int)
        for item in items:
            restored[item.product_id] += item.quantity

        for product_id in sorted(restored):
            self.release(product_id, restored[product_id])
