from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import CartConflict, InsufficientStock, NotFound
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Cart use cases for the current user.
    commands (add, update, remove) bump the cart version with an optimistic check
    query (get) only reads, but creates the cart on first access
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        return self._to_cart_dict(cart)

    def get_or_create_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_cart_by_user(user_id)
        if existing:
            return existing

        # two first requests may race on the unique user_id: insert, refetch on conflict
        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, version=1))
            logger.info(f"Created cart {created.id} for user {user_id}")
            return created
        except IntegrityError:
            self.repo.rollback()
            logger.info(f"Cart for user {user_id} created concurrently, refetching")
            cart = self.repo.get_cart_by_user(user_id)
            if cart is None:
                raise
            return cart

    # commands
    def add_product(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFound("Product not found")

        cart = self.get_or_create_cart(user_id)
        existing_item = self.repo.get_cart_item(cart.id, product_id)
        new_quantity = quantity + (existing_item.quantity if existing_item else 0)

        # hint only, the binding check happens at placement
        if product.stock_quantity < new_quantity:
            raise InsufficientStock(product.id, product.name, product.stock_quantity, new_quantity)

        if existing_item:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {new_quantity}"
            )
            existing_item.quantity = new_quantity
            self.repo.add_cart_item(existing_item)
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
            )

        return self._commit_with_version(cart, user_id)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        cart = self.get_or_create_cart(user_id)
        item = self.repo.get_cart_item_by_id(cart.id, item_id)
        if not item:
            raise NotFound("Cart item not found")

        if item.product.stock_quantity < quantity:
            raise InsufficientStock(item.product.id, item.product.name, item.product.stock_quantity, quantity)

        item.quantity = quantity
        self.repo.add_cart_item(item)
        return self._commit_with_version(cart, user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        item = self.repo.get_cart_item_by_id(cart.id, item_id)
        if not item:
            raise NotFound("Cart item not found")

        logger.info(f"Removing item {item_id} from cart {cart.id}")
        self.repo.delete_cart_item(item)
        return self._commit_with_version(cart, user_id)

    def _commit_with_version(self, cart: CartModel, user_id: int) -> Dict[str, Any]:
        old_version = cart.version
        # UPDATE carts SET version = 2 WHERE id = 1 AND version = 1
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={"version": old_version + 1},
        )
        if rowcount == 0:
            self.repo.rollback()
            raise CartConflict()

        self.repo.commit()
        # items were written through cart_id, reload the collection
        self.repo.db.expire(cart)
        logger.info(f"Cart {cart.id} saved, new version: {cart.version}")
        return self._to_cart_dict(cart)

    @staticmethod
    def _to_cart_dict(cart: CartModel) -> Dict[str, Any]:
        items = [
            {
                "item_id": i.id,
                "product_id": i.product_id,
                "product_name": i.product.name,
                "unit_price": i.product.price,
                "quantity": i.quantity,
                "line_total": i.product.price * i.quantity,
            }
            for i in cart.items
        ]
        total = sum((i["line_total"] for i in items), Decimal("0.00"))

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "version": cart.version,
            "items": items,
            "total": total,
        }
