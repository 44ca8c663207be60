from celery import Celery
from calltraffic.core.config import settings

celery_app = Celery(
    "calltraffic",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["calltraffic.tasks"],
)

celery_app.conf.beat_schedule = {
    "regenerate-demo-traffic": {
        "task": "calltraffic.tasks.regenerate_demo_traffic",
        "schedule": settings.regeneration_schedule_seconds,
    }
}
