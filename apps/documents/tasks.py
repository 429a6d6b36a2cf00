"""
Periodic document tasks.
"""
import logging
from celery import shared_task
from apps.core.tasks import LoggedTask
from apps.documents.services import DocumentService

logger = logging.getLogger(__name__)


@shared_task(base=LoggedTask, ignore_result=False)
def expire_documents():
    """Mark approved documents past their expiration date as EXPIRED."""
    expired = DocumentService.expire_due()
    if expired:
        logger.info("Expired documents", extra={'expired_count': expired})
    return {'expired': expired}
