"""
Celery configuration for the periodic packaging trigger.

Loaded by `celery_app.config_from_object(...)` in dossier_packager/tasks/__init__.py.
Broker and schedule come from the application settings.
"""

from dossier_packager.core.config import settings
from dossier_packager.core.schedule import build_beat_schedule

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = settings.CELERY_BROKER_URL
result_backend = settings.CELERY_RESULT_BACKEND

# ═══════════════════════════════════════════════════════════
#  Serialization
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone
# ═══════════════════════════════════════════════════════════

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

# A missed tick is simply picked up by the next one
task_acks_late = False
worker_prefetch_multiplier = 1

# The trigger call returns as soon as the batch is accepted
task_soft_time_limit = 60
task_time_limit = 90

result_expires = 3600

worker_send_task_events = False
task_send_sent_event = False

task_default_queue = "default"

# ═══════════════════════════════════════════════════════════
#  Beat Schedule
# ═══════════════════════════════════════════════════════════
# Run with:
#   celery -A dossier_packager.tasks beat
#   celery -A dossier_packager.tasks worker -Q default

beat_schedule = build_beat_schedule(
    settings.PACKAGE_CRON_PATTERN,
    "dossier_packager.tasks.packaging_tasks.trigger_packaging",
)
