from celery import Celery

from stockroom.config import get_settings

settings = get_settings()

EMAIL_QUEUE = "email"
EMAIL_TASKS = ("send_verification_email", "send_password_reset_email")

celery_app = Celery(
    "stockroom",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["stockroom.tasks.email_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,

    # Mail has its own queue
    task_default_queue="default",
    task_routes={name: {"queue": EMAIL_QUEUE} for name in EMAIL_TASKS},
    task_annotations={name: {"rate_limit": "30/m"} for name in EMAIL_TASKS},

    task_soft_time_limit=45,
    task_time_limit=60,

    # Email results are never read
    task_ignore_result=True,
    result_expires=3600,

    # Redeliver emails whose worker died mid-send
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
)
