"""
Celery configuration for Gestio.
"""
import os
import logging
from celery import Celery
from celery.signals import task_failure, task_retry

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('gestio')

# Load configuration from Django settings with CELERY_ prefix
# (including CELERY_BEAT_SCHEDULE)
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

logger = logging.getLogger(__name__)


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, args=None, kwargs=None, einfo=None, **extra):
    """Log failures of tasks that do not use LoggedTask."""
    from apps.core.tasks import LoggedTask
    if isinstance(sender, LoggedTask):
        return
    logger.error(
        f"Task failed: {sender.name}",
        extra={
            'task_id': task_id,
            'task_name': sender.name,
            'exception': str(exception)[:500] if exception else None,
            'task_args': str(args)[:200] if args else None,
        },
        exc_info=einfo.exc_info if einfo else None
    )


@task_retry.connect
def task_retry_handler(sender=None, request=None, reason=None, einfo=None, **extra):
    """Log task retry."""
    logger.warning(
        f"Task retry: {sender.name}",
        extra={
            'task_id': getattr(request, 'id', None),
            'task_name': sender.name,
            'reason': str(reason)[:200] if reason else None,
            'retry_count': getattr(request, 'retries', 0),
        }
    )
