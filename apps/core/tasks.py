"""
Base Celery task class with logging and Sentry integration.
"""
import logging
from celery import Task
from apps.core.sentry_utils import add_breadcrumb, capture_exception, start_transaction

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {'password', 'token', 'secret', 'email', 'tax_id'}


class LoggedTask(Task):
    """
    Base task class that logs start, completion and failure of each run,
    reports failures to Sentry and wraps the run in a Sentry transaction.
    """

    def __call__(self, *args, **kwargs):
        task_id = self.request.id
        task_name = self.name

        transaction = start_transaction(name=f"task.{task_name}", op="celery.task")

        try:
            logger.info(
                f"Task started: {task_name}",
                extra={
                    'task_id': task_id,
                    'task_name': task_name,
                    'task_args': self._sanitize_args(args),
                    'task_kwargs': self._sanitize_kwargs(kwargs),
                }
            )
            add_breadcrumb(
                category="task",
                message=f"Task started: {task_name}",
                data={'task_id': task_id},
            )

            result = super().__call__(*args, **kwargs)

            logger.info(
                f"Task completed: {task_name}",
                extra={
                    'task_id': task_id,
                    'task_name': task_name,
                    'result': self._sanitize_result(result),
                }
            )
            if transaction:
                transaction.set_status("ok")
                transaction.finish()
            return result

        except Exception as exc:
            logger.error(
                f"Task failed: {task_name}",
                extra={
                    'task_id': task_id,
                    'task_name': task_name,
                    'exception': str(exc),
                    'task_kwargs': self._sanitize_kwargs(kwargs),
                },
                exc_info=True
            )
            capture_exception(
                exc,
                task={
                    'task_id': task_id,
                    'task_name': task_name,
                    'kwargs': self._sanitize_kwargs(kwargs),
                }
            )
            if transaction:
                transaction.set_status("internal_error")
                transaction.finish()
            raise

    def _sanitize_args(self, args):
        if not args:
            return []
        sanitized = [str(arg) for arg in args[:10]]
        if len(args) > 10:
            sanitized.append('... (truncated)')
        return sanitized

    def _sanitize_kwargs(self, kwargs):
        if not kwargs:
            return {}
        return {
            key: '********' if any(s in key.lower() for s in SENSITIVE_KEYS) else str(value)
            for key, value in kwargs.items()
        }

    def _sanitize_result(self, result):
        if result is None:
            return None
        result_str = str(result)
        if len(result_str) > 200:
            return result_str[:200] + '... (truncated)'
        return result_str
