"""
Celery application factory.
"""

from celery import Celery

celery_app = Celery("dossier_packager")
celery_app.config_from_object("dossier_packager.tasks.celeryconfig")

celery_app.autodiscover_tasks([
    "dossier_packager.tasks.packaging_tasks",
])
