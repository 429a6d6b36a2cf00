"""
Translate database failures into generic domain errors.
"""
import logging
from contextlib import contextmanager

from django.db import DatabaseError

from apps.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def persistence_errors(operation, **context):
    """
    Log database errors with the operation and its input, then raise a
    PersistenceError that carries no internal detail.

    Usage:
        with persistence_errors('create client', company_id=company.id, input=data):
            Client.objects.create(...)
    """
    try:
        yield
    except DatabaseError as e:
        logger.error(
            f"Error trying to {operation}",
            extra={'operation': operation, 'error': str(e), **{f'ctx_{k}': v for k, v in context.items()}},
            exc_info=True
        )
        raise PersistenceError(f'Could not {operation}') from e
