from celery import Celery
from appforge.core.config import settings

celery_app = Celery("appforge", broker=settings.redis_url, backend=settings.redis_url, include=["appforge.tasks.jobs"])
celery_app.conf.update(task_track_started=True, result_expires=3600, broker_connection_retry_on_startup=True,)
celery_app.conf.beat_schedule = {
    "purge-expired-jobs": {"task": "purge_expired_jobs", "schedule": 6 * 60 * 60},
}
