# shopcart/tasks/expire.py
from shopcart.celery_worker import celery_app
from shopcart.data.database import SessionLocal
from shopcart.services.cart_service import CartService
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="shopcart.tasks.expire.expire_carts_task")
def expire_carts_task():
    logger.info("Expire carts task started")

    db = SessionLocal()
    try:
        return CartService(db).expire_carts()
    finally:
        db.close()
