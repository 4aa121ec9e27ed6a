import os
from celery import Celery
from celery.schedules import crontab
from dotenv import load_dotenv

load_dotenv()

broker = os.getenv("REDIS_URL", "redis://localhost:6379/0")
backend = broker

celery = Celery("ritual_workers", broker=broker, backend=backend, include=["workers.tasks"])
celery.conf.task_routes = {
    "tasks.deliver_push": {"queue": "push"},
    "tasks.daily_tick": {"queue": "ritual"},
}
# pushes carry an eta, possibly a day out; keep them invisible to other workers until then
celery.conf.broker_transport_options = {"visibility_timeout": 2 * 24 * 60 * 60}
celery.conf.enable_utc = True

# Beat schedule for periodic tasks
celery.conf.beat_schedule = {
    "daily-tick-hourly": {
        "task": "tasks.daily_tick",
        # generation is idempotent per (user, day)
        "schedule": crontab(minute=5),
    },
}
