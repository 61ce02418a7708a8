# shopcart/services/notification_service.py
from shopcart.celery_worker import celery_app
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Sends notifications through Celery so checkout does not wait on them.
    """

    @staticmethod
    def send_transaction_notification(user_id: int, transaction_id: int):
        send_transaction_notification_task.delay(user_id, transaction_id)


@celery_app.task(name="shopcart.services.notification_service.send_transaction_notification_task")
def send_transaction_notification_task(user_id: int, transaction_id: int):
    """
    Only logs for now, an email/SMS gateway call would go here.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: transaction {transaction_id} completed")

    return {"user_id": user_id, "transaction_id": transaction_id, "status": "sent"}
