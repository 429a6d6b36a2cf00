"""
Active company resolution.

Every company-scoped request needs exactly one active company. The user's
stored preference is honoured while it still points at an active
membership in an active company; otherwise the earliest active membership
is chosen and written back as the new preference.
"""
import logging
from typing import Optional

from apps.core.exceptions import NoActiveTenantError, NotFoundError
from apps.rbac.models import Member
from apps.tenants.models import Company, UserPreference

logger = logging.getLogger(__name__)


class TenantContextService:
    """Resolve and switch the active company of a user."""

    @staticmethod
    def _active_memberships(user):
        return Member.objects.filter(
            user=user,
            is_active=True,
            company__is_active=True,
            company__deleted_at__isnull=True,
        )

    @classmethod
    def resolve_active_company(cls, user) -> Optional[Company]:
        """
        Resolve the active company for a user.

        Order:
        1. Stored preference, if the membership and company are still active
        2. Earliest-created active membership, persisted as the preference
        3. None

        Args:
            user: User instance

        Returns:
            Company or None when the user has no accessible company
        """
        if user is None or not getattr(user, 'is_authenticated', False):
            return None

        preference = UserPreference.objects.filter(user=user).first()
        if preference is not None and preference.active_company_id:
            if cls._active_memberships(user).filter(company_id=preference.active_company_id).exists():
                return Company.objects.get(id=preference.active_company_id)

        membership = (
            cls._active_memberships(user)
            .select_related('company')
            .order_by('created_at')
            .first()
        )
        if membership is None:
            return None

        cls._store_preference(user, membership.company)

        logger.info(
            "Active company fallback to earliest membership",
            extra={'user_id': str(user.id), 'company_id': str(membership.company_id)}
        )
        return membership.company

    @classmethod
    def require_active_company(cls, user) -> Company:
        """Like resolve_active_company, but raise NoActiveTenantError on None."""
        company = cls.resolve_active_company(user)
        if company is None:
            raise NoActiveTenantError()
        return company

    @classmethod
    def set_active_company(cls, user, company_id) -> Company:
        """
        Switch the user's active company.

        Raises:
            NotFoundError: the user has no active membership in an active
                company with that id
        """
        membership = (
            cls._active_memberships(user)
            .select_related('company')
            .filter(company_id=company_id)
            .first()
        )
        if membership is None:
            raise NotFoundError('Company not found', {'company_id': str(company_id)})

        cls._store_preference(user, membership.company)
        return membership.company

    @classmethod
    def list_companies(cls, user):
        """Active companies where the user holds an active membership."""
        return Company.objects.active().accessible_by(user).order_by('name')

    @staticmethod
    def _store_preference(user, company):
        UserPreference.objects_with_deleted.update_or_create(
            user=user,
            defaults={'active_company': company, 'deleted_at': None},
        )
