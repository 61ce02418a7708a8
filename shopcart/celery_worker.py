# shopcart/celery_worker.py
from celery import Celery

from shopcart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "shopcart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# import the task modules explicitly so the worker registers them
celery_app.conf.imports = (
    "shopcart.tasks.expire",
    "shopcart.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "expire-carts-every-minute": {
        "task": "shopcart.tasks.expire.expire_carts_task",
        "schedule": 60.0,  # seconds
    },
}

celery_app.conf.timezone = "UTC"
