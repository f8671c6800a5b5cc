import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("getin")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Persist confirmed -> active once check-in has passed, every hour
    "activate-due-bookings": {
        "task": "bookings.activate_due_bookings",
        "schedule": crontab(minute=0),
        "options": {"expires": 50 * 60},
    },
}
