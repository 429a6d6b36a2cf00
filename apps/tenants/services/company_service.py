"""
Company lifecycle service.
"""
import logging
from typing import Any, Dict

from django.db import transaction
from django.utils.text import slugify

from apps.core.exceptions import PermissionDeniedError, ValidationError
from apps.rbac.models import Member
from apps.tenants.models import Company
from apps.tenants.services.tenant_context_service import TenantContextService

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'tax_id', 'email', 'phone', 'address')


class CompanyService:
    """Create, update and deactivate companies."""

    @staticmethod
    def _unique_slug(name: str) -> str:
        base_slug = slugify(name)[:100] or 'company'
        slug = base_slug
        counter = 1
        while Company.objects_with_deleted.filter(slug=slug).exists():
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    @classmethod
    def create_company(cls, user, data: Dict[str, Any]) -> Company:
        """
        Create a company with the user as owner.

        System roles and the owner membership are seeded by the post_save
        signal in apps.rbac. The new company becomes the user's active one.

        Raises:
            ValidationError: missing name
        """
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError('Company name is required', {'name': name})

        with transaction.atomic():
            company = Company.objects.create(
                name=name,
                slug=cls._unique_slug(name),
                created_by=user,
                **{field: data.get(field) or '' for field in UPDATABLE_FIELDS if field != 'name'}
            )
            TenantContextService.set_active_company(user, company.id)

        logger.info(
            f"Company created: {company.slug}",
            extra={'company_id': str(company.id), 'user_id': str(user.id)}
        )
        return company

    @staticmethod
    def _require_owner(user, company):
        if not Member.objects.filter(company=company, user=user, is_active=True, is_owner=True).exists():
            raise PermissionDeniedError('Only owners can manage the company')

    @classmethod
    def update_company(cls, user, company: Company, data: Dict[str, Any]) -> Company:
        cls._require_owner(user, company)

        for field in UPDATABLE_FIELDS:
            if field in data:
                setattr(company, field, data[field] or '')

        if not company.name.strip():
            raise ValidationError('Company name is required', {'name': company.name})

        company.save()
        return company

    @classmethod
    def deactivate_company(cls, user, company: Company) -> Company:
        """
        Deactivate the company. Its members fall back to their next
        accessible company on the following request.
        """
        cls._require_owner(user, company)

        company.is_active = False
        company.save(update_fields=['is_active', 'updated_at'])

        logger.warning(
            f"Company deactivated: {company.slug}",
            extra={'company_id': str(company.id), 'user_id': str(user.id)}
        )
        return company
