"""
Generic service for company catalogs.

Catalogs are the small lookup tables a company configures (cost centers,
job positions, vehicle brands, ...). They share the same shape: a name,
an ``is_active`` flag and the owning company.
"""
import logging
from django.db import IntegrityError, transaction
from django.db.models import Q

from apps.core.exceptions import ConflictError, NotFoundError, ValidationError
from apps.core.persistence import persistence_errors

logger = logging.getLogger(__name__)


class CatalogService:
    """CRUD operations for company catalog models."""

    @staticmethod
    def list_entries(model, company, search=None, search_fields=('name',), is_active=None):
        queryset = model.objects.for_company(company)

        if search:
            condition = Q()
            for field in search_fields:
                condition |= Q(**{f'{field}__icontains': search})
            queryset = queryset.filter(condition)

        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)

        return queryset.order_by('name')

    @staticmethod
    def get_entry(model, company, entry_id):
        try:
            return model.objects.for_company(company).get(id=entry_id)
        except model.DoesNotExist:
            raise NotFoundError(
                f'{model._meta.verbose_name.capitalize()} not found',
                {'id': str(entry_id)}
            )

    @staticmethod
    def resolve_reference(model, company, entry_id, field):
        """
        Resolve a catalog id sent in a write payload.

        Empty values clear the reference. An id from another company is a
        validation error on ``field``, never a silent cross-company link.
        """
        if not entry_id:
            return None
        try:
            return model.objects.for_company(company).get(id=entry_id)
        except (model.DoesNotExist, ValueError, TypeError):
            raise ValidationError(
                f'Unknown {model._meta.verbose_name}',
                {field: str(entry_id)}
            )

    @staticmethod
    def create_entry(model, company, data):
        try:
            with transaction.atomic():
                return model.objects.create(company=company, **data)
        except IntegrityError:
            raise ConflictError(
                f'A {model._meta.verbose_name} with this name already exists',
                {'name': data.get('name')}
            )

    @staticmethod
    def update_entry(entry, data):
        for field, value in data.items():
            setattr(entry, field, value)
        try:
            with transaction.atomic():
                entry.save()
        except IntegrityError:
            raise ConflictError(
                f'A {entry._meta.verbose_name} with this name already exists',
                {'name': data.get('name')}
            )
        return entry

    @staticmethod
    def delete_entry(entry):
        """
        Deactivate a catalog entry.

        The row stays, so employees, vehicles and document type conditions
        that reference it keep their links.
        """
        entry.is_active = False
        with persistence_errors(f'delete {entry._meta.verbose_name}', entry_id=str(entry.id)):
            entry.save(update_fields=['is_active', 'updated_at'])

        logger.info(
            f"Deactivated {entry._meta.verbose_name}",
            extra={'company_id': str(entry.company_id), 'entry_id': str(entry.id)}
        )
        return entry
