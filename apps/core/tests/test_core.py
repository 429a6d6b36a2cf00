"""
Tests for shared infrastructure: soft delete, catalogs, error translation
and structured logging.
"""
import json
import logging
import pytest
from unittest import mock
from django.db import DatabaseError

from apps.core.catalog import CatalogService
from apps.core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from apps.core.logging import JSONFormatter, PIIMasker
from apps.core.persistence import persistence_errors
from apps.hr.models import CostCenter


@pytest.mark.django_db
class TestSoftDelete:

    def test_delete_hides_row(self, company):
        center = CostCenter.objects.create(company=company, name='Operaciones')

        center.delete()

        assert not CostCenter.objects.filter(id=center.id).exists()
        assert CostCenter.objects_with_deleted.get(id=center.id).is_deleted

    def test_restore(self, company):
        center = CostCenter.objects.create(company=company, name='Operaciones')
        center.delete()

        center.restore()

        assert CostCenter.objects.filter(id=center.id).exists()

    def test_queryset_delete_is_soft(self, company):
        CostCenter.objects.create(company=company, name='A')
        CostCenter.objects.create(company=company, name='B')

        CostCenter.objects.for_company(company).delete()

        assert CostCenter.objects.for_company(company).count() == 0
        assert CostCenter.objects_with_deleted.filter(company=company).count() == 2


@pytest.mark.django_db
class TestCatalogService:

    def test_entries_are_company_scoped(self, company, other_company):
        CatalogService.create_entry(CostCenter, company, {'name': 'Taller'})
        CatalogService.create_entry(CostCenter, other_company, {'name': 'Taller'})

        assert CatalogService.list_entries(CostCenter, company).count() == 1

    def test_duplicate_name_conflicts(self, company):
        CatalogService.create_entry(CostCenter, company, {'name': 'Taller'})

        with pytest.raises(ConflictError):
            CatalogService.create_entry(CostCenter, company, {'name': 'Taller'})

    def test_search_and_active_filter(self, company):
        CatalogService.create_entry(CostCenter, company, {'name': 'Taller Norte'})
        CatalogService.create_entry(CostCenter, company, {'name': 'Oficina', 'is_active': False})

        assert [c.name for c in CatalogService.list_entries(CostCenter, company, search='norte')] == ['Taller Norte']
        assert [c.name for c in CatalogService.list_entries(CostCenter, company, is_active=False)] == ['Oficina']

    def test_get_entry_of_other_company(self, company, other_company):
        entry = CatalogService.create_entry(CostCenter, other_company, {'name': 'Ajeno'})

        with pytest.raises(NotFoundError):
            CatalogService.get_entry(CostCenter, company, entry.id)

    def test_cross_company_reference_is_invalid(self, company, other_company):
        entry = CatalogService.create_entry(CostCenter, other_company, {'name': 'Ajeno'})

        with pytest.raises(ValidationError) as exc_info:
            CatalogService.resolve_reference(CostCenter, company, entry.id, 'cost_center_id')

        assert 'cost_center_id' in exc_info.value.details

    def test_empty_reference_clears(self, company):
        assert CatalogService.resolve_reference(CostCenter, company, None, 'cost_center_id') is None

    def test_delete_deactivates_entry(self, company):
        entry = CatalogService.create_entry(CostCenter, company, {'name': 'Taller'})

        CatalogService.delete_entry(entry)

        entry = CostCenter.objects.get(id=entry.id)
        assert entry.is_active is False
        assert not entry.is_deleted
        assert list(CatalogService.list_entries(CostCenter, company, is_active=True)) == []


class TestPersistenceErrors:

    def test_database_error_is_translated(self):
        with mock.patch('apps.core.persistence.logger') as logger:
            with pytest.raises(PersistenceError) as exc_info:
                with persistence_errors('create client', company_id='c-1'):
                    raise DatabaseError('connection reset')

        assert exc_info.value.message == 'Could not create client'
        assert 'connection reset' not in exc_info.value.message
        extra = logger.error.call_args.kwargs['extra']
        assert extra['operation'] == 'create client'
        assert extra['ctx_company_id'] == 'c-1'

    def test_other_errors_pass_through(self):
        with pytest.raises(KeyError):
            with persistence_errors('update lead'):
                raise KeyError('status')


class TestLogging:

    def test_mask_text(self):
        masked = PIIMasker.mask_text('contact ana.perez@example.com or +5491122334455, cuit 20-12345678-3')

        assert 'ana.perez@example.com' not in masked
        assert '+5491122334455' not in masked
        assert '20-12345678-3' not in masked

    def test_mask_dict_hides_sensitive_keys(self):
        masked = PIIMasker.mask_dict({
            'email': 'ana@example.com',
            'nested': {'password': 'hunter2', 'name': 'Ana'},
            'count': 3,
        })

        assert masked['email'] == '********'
        assert masked['nested']['password'] == '********'
        assert masked['nested']['name'] == 'Ana'
        assert masked['count'] == 3

    def test_json_formatter_includes_context(self):
        record = logging.LogRecord(
            'apps.documents', logging.INFO, __file__, 10,
            'Document uploaded by ana@example.com', None, None,
        )
        record.company_id = 'c-1'
        record.request_id = 'req-9'
        record.document = {'token': 'abc', 'file_name': 'license.pdf'}

        data = json.loads(JSONFormatter().format(record))

        assert data['level'] == 'INFO'
        assert data['company_id'] == 'c-1'
        assert data['request_id'] == 'req-9'
        assert 'ana@example.com' not in data['message']
        assert data['document'] == {'token': '********', 'file_name': 'license.pdf'}


@pytest.mark.django_db
class TestHealthCheck:

    def test_health_is_public(self, api_client):
        response = api_client.get('/v1/health')

        assert response.status_code == 200
        assert response.data['database'] == 'healthy'

    def test_plain_http_is_served_without_debug(self, api_client, settings):
        settings.DEBUG = False

        response = api_client.get('/v1/health', secure=False)

        assert not settings.SECURE_SSL_REDIRECT
        assert response.status_code == 200
