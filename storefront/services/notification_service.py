# storefront/services/notification_service.py
from kombu.exceptions import OperationalError as BrokerError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_PLACED = "ORDER_PLACED"
PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
STATUS_CHANGED = "STATUS_CHANGED"
ORDER_CANCELLED = "ORDER_CANCELLED"


class NotificationService:
    """
    Order notifications, dispatched through Celery.

    Called only after the order transaction has committed. A publish failure
    is logged and swallowed here: the order is already durable and must not
    be reported as failed because an e-mail could not be queued.
    """

    def send_order_notification(self, user_id: int, order_number: str, event: str, status: str) -> bool:
        try:
            send_order_notification_task.delay(user_id, order_number, event, status)
            return True
        except BrokerError as e:
            logger.warning(f"Could not queue {event} notification for order {order_number}: {e}")
            return False
        except Exception:
            logger.exception(f"Failed to publish {event} notification for order {order_number}")
            return False


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_number: str, event: str, status: str):
    """
    Celery task. A real deployment would hand off to an e-mail/SMS/push
    provider here; for now the notification is logged.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_number} {event} (status {status})")
    return {"user_id": user_id, "order_number": order_number, "event": event, "status": "sent"}
