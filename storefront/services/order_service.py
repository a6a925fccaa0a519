# storefront/services/order_service.py
from typing import Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain import order_status
from storefront.domain.context import RequestContext
from storefront.domain.errors import (
    AccessDenied,
    AlreadyConfirmed,
    EmptyCart,
    InvalidState,
    NotCancellable,
    NotFound,
    OrderProcessingError,
    StorefrontError,
)
from storefront.domain.order_status import OrderStatus, PaymentStatus
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services import notification_service as notifications
from storefront.services.inventory_service import InventoryService
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger
from storefront.utils.retry import db_retry
from storefront.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = get_logger(__name__)

CANCELLED_BY_USER_NOTE = "Order cancelled by user"
DEFAULT_ADMIN_NOTE = "Status updated by admin"


def normalize_paging(page: int, size: int) -> tuple[int, int]:
    p = page if page and page > 0 else 1
    s = size if size and size > 0 else DEFAULT_PAGE_SIZE
    return p, min(s, MAX_PAGE_SIZE)


class OrderService:
    """
    Order processing use cases.

    commands (place, confirm payment, update status, cancel) lock what they
    mutate and run as one transaction each: every stock movement, order,
    item and history write and the cart clearing commit together or not at
    all. queries (detail, tracking, history) only read.

    Business rule violations surface as ``StorefrontError`` subclasses; any
    store failure is rolled back and re-raised as ``OrderProcessingError``.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.inventory = InventoryService(db)
        self.notification_service = notification_service or NotificationService()

    # commands
    def place_order(self, ctx: RequestContext, note: str | None = None) -> Dict[str, Any]:
        logger.info(f"Placing order for user {ctx.user_id}")

        order = self._in_transaction("place_order", lambda: self._place_order(ctx, note))

        logger.info(f"Order {order['order_number']} created for user {ctx.user_id}, total {order['total_amount']}")
        self._notify(order, notifications.ORDER_PLACED)
        return order

    def _place_order(self, ctx: RequestContext, note: str | None) -> Dict[str, Any]:
        cart, lines = self.cart_repo.get_snapshot(ctx.user_id)
        if not lines:
            raise EmptyCart()

        # all lines or nothing, a miss rolls back the earlier decrements
        self.inventory.reserve_all(lines)

        order = OrderModel.create(ctx.user_id, lines, note)
        self.repo.add_order(order)

        self.cart_repo.clear_cart(cart)
        return self._to_order_dict(order)

    def confirm_payment(self, ctx: RequestContext, order_id: int, payment_reference: str) -> Dict[str, Any]:
        logger.info(f"Confirming payment for order {order_id}")

        def work():
            order = self._get_order_for_update(order_id)
            self._check_access(ctx, order)

            if order.status != OrderStatus.CREATED:
                raise InvalidState("Payment can only be confirmed for orders in CREATED status")
            if order.payment_status == PaymentStatus.COMPLETED:
                raise AlreadyConfirmed()

            order.payment_status = PaymentStatus.COMPLETED
            order_status.assert_transition(order.status, OrderStatus.CONFIRMED)
            order.append_status(OrderStatus.CONFIRMED, f"Payment confirmed: {payment_reference}")
            self.db.flush()
            return self._to_order_dict(order)

        order = self._in_transaction("confirm_payment", work)

        logger.info(f"Payment confirmed for order {order_id}")
        self._notify(order, notifications.PAYMENT_CONFIRMED)
        return order

    def update_order_status(
        self,
        ctx: RequestContext,
        order_id: int,
        new_status: OrderStatus,
        note: str | None = None,
    ) -> Dict[str, Any]:
        """
        Privileged move along the status graph. Admin checks live in the API
        layer. A move to CANCELLED hands the stock back like a user
        cancellation does.
        """
        new_status = OrderStatus(new_status)
        logger.info(f"Updating order {order_id} status to {new_status.value} (by user {ctx.user_id})")

        def work():
            order = self._get_order_for_update(order_id)
            order_status.assert_transition(order.status, new_status)

            if new_status == OrderStatus.CANCELLED:
                self.inventory.release_all(order.items)

            order.append_status(new_status, note or DEFAULT_ADMIN_NOTE)
            self.db.flush()
            return self._to_order_dict(order)

        order = self._in_transaction("update_order_status", work)

        logger.info(f"Order {order_id} status updated to {new_status.value}")
        self._notify(order, notifications.STATUS_CHANGED)
        return order

    def cancel_order(self, ctx: RequestContext, order_id: int) -> Dict[str, Any]:
        logger.info(f"Cancelling order {order_id} for user {ctx.user_id}")

        def work():
            order = self._get_order_for_update(order_id)
            if not order.is_owned_by(ctx.user_id):
                raise AccessDenied()

            if not order_status.is_cancellable(order.status):
                raise NotCancellable(order.status.value)

            # restore and status change share the commit
            self.inventory.release_all(order.items)
            order.append_status(OrderStatus.CANCELLED, CANCELLED_BY_USER_NOTE)
            self.db.flush()
            return self._to_order_dict(order)

        order = self._in_transaction("cancel_order", work)

        logger.info(f"Order {order_id} cancelled")
        self._notify(order, notifications.ORDER_CANCELLED)
        return order

    # queries
    def get_order_by_id(self, ctx: RequestContext, order_id: int) -> Dict[str, Any]:
        def work():
            order = self._get_order(order_id)
            self._check_access(ctx, order)
            return self._to_order_dict(order)

        return self._in_transaction("get_order_by_id", work)

    def get_order_tracking(self, ctx: RequestContext, order_id: int) -> Dict[str, Any]:
        def work():
            order = self._get_order(order_id)
            self._check_access(ctx, order)
            return self._to_tracking_dict(order)

        return self._in_transaction("get_order_tracking", work)

    def get_my_orders(self, ctx: RequestContext, page: int = 1, size: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        page, size = normalize_paging(page, size)

        def work():
            total = self.repo.count_orders_by_user(ctx.user_id)
            orders = self.repo.list_orders_by_user(ctx.user_id, offset=(page - 1) * size, limit=size)
            return {
                "items": [self._to_order_dict(o) for o in orders],
                "page": page,
                "size": size,
                "total": total,
                "pages": (total + size - 1) // size,
            }

        return self._in_transaction("get_my_orders", work)

    # helpers
    def _in_transaction(self, operation: str, work: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return self._attempt(work)
        except StorefrontError as e:
            logger.warning(f"{operation} rejected: {e}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed, transaction rolled back: {e}")
            raise OrderProcessingError(operation) from e

    @db_retry()
    def _attempt(self, work: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            result = work()
            self.db.commit()
            return result
        except Exception:
            self.db.rollback()
            raise

    def _get_order(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    def _get_order_for_update(self, order_id: int) -> OrderModel:
        order = self.repo.get_order_for_update(order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def _check_access(ctx: RequestContext, order: OrderModel) -> None:
        if ctx.is_admin:
            return
        if not order.is_owned_by(ctx.user_id):
            raise AccessDenied()

    def _notify(self, order: Dict[str, Any], event: str) -> None:
        self.notification_service.send_order_notification(
            user_id=order["user_id"],
            order_number=order["order_number"],
            event=event,
            status=order["status"],
        )

    @staticmethod
    def _to_order_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "user_id": order.user_id,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "total_amount": order.total_amount,
            "note": order.note,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
            "items": [
                {
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "quantity": i.quantity,
                    "price": i.price,
                    "line_total": i.line_total,
                }
                for i in order.items
            ],
        }

    @staticmethod
    def _to_tracking_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "current_status": order.status.value,
            "payment_status": order.payment_status.value,
            "total_amount": order.total_amount,
            "created_at": order.created_at,
            "next_statuses": sorted(s.value for s in order_status.allowed_transitions(order.status)),
            # history is kept in (timestamp, id) order
            "timeline": [
                {
                    "status": h.status.value,
                    "timestamp": h.timestamp,
                    "note": h.note,
                }
                for h in order.status_history
            ],
        }
