"""
Sentry utilities for adding context and breadcrumbs.
"""
import sentry_sdk
from django.conf import settings


def set_company_context(company):
    """
    Set company context in Sentry for error tracking.

    Args:
        company: Company model instance
    """
    if not settings.SENTRY_DSN:
        return

    sentry_sdk.set_context("company", {
        "id": str(company.id),
        "name": company.name,
        "slug": company.slug,
    })

    # Also set as tag for easier filtering
    sentry_sdk.set_tag("company_id", str(company.id))
    sentry_sdk.set_tag("company_slug", company.slug)


def set_user_context(user, membership=None):
    """
    Set user context in Sentry for error tracking.

    Args:
        user: User model instance
        membership: Optional Member instance for the active company
    """
    if not settings.SENTRY_DSN:
        return

    user_data = {
        "id": str(user.id),
        "is_active": user.is_active,
    }

    if membership:
        user_data["company_id"] = str(membership.company_id)
        user_data["role"] = membership.role.slug if membership.role_id else None
        user_data["is_owner"] = membership.is_owner

    sentry_sdk.set_user(user_data)


def add_breadcrumb(category, message, level="info", data=None):
    """
    Add a breadcrumb to Sentry for debugging.

    Args:
        category: Category of the breadcrumb (e.g., "task", "storage")
        message: Human-readable message
        level: Severity level (debug, info, warning, error)
        data: Optional dictionary of additional data
    """
    if not settings.SENTRY_DSN:
        return

    sentry_sdk.add_breadcrumb(
        category=category,
        message=message,
        level=level,
        data=data or {}
    )


def capture_exception(exception, **kwargs):
    """
    Capture an exception in Sentry with optional context.

    Args:
        exception: The exception to capture
        **kwargs: Additional context to attach
    """
    if not settings.SENTRY_DSN:
        return

    with sentry_sdk.push_scope() as scope:
        for key, value in kwargs.items():
            scope.set_context(key, value)
        sentry_sdk.capture_exception(exception)


def start_transaction(name, op):
    """
    Start a Sentry transaction for performance monitoring.

    Returns:
        Transaction object or None if Sentry is not configured
    """
    if not settings.SENTRY_DSN:
        return None

    return sentry_sdk.start_transaction(name=name, op=op)
