"""
Tests for the document lifecycle and the compliance status it drives.
"""
import re
import pytest
from datetime import date, timedelta
from unittest import mock
from django.db import DatabaseError
from django.utils import timezone
from django.utils.text import slugify

from apps.core.exceptions import (
    ConflictError, NotFoundError, PersistenceError, StorageError, ValidationError,
)
from apps.documents.models import Document, DocumentType, DocumentVersion
from apps.documents.services import DocumentService, DocumentTypeService
from apps.equipment.models import Vehicle
from apps.hr.constants import ComplianceStatus
from apps.hr.models import Employee

PDF = b'%PDF-1.4 test document'


def make_type(company, name, **fields):
    fields.setdefault('applies_to', DocumentType.APPLIES_TO_EMPLOYEE)
    return DocumentType.objects.create(company=company, name=name, slug=slugify(name), **fields)


def stored_files(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob('*') if p.is_file()) if root.exists() else []


@pytest.fixture
def employee(company):
    return Employee.objects.create(company=company, employee_number='1', first_name='Ana', last_name='Ruiz')


@pytest.fixture
def license_type(company):
    return make_type(company, 'Driving license', is_mandatory=True, has_expiration=True)


@pytest.fixture
def next_year():
    return timezone.localdate() + timedelta(days=365)


@pytest.mark.django_db
class TestUpload:

    def test_first_upload_creates_approved_document(self, company, user, employee, license_type,
                                                    next_year, local_storage):
        document = DocumentService.upload(
            company, license_type.id, 'scan.PDF', PDF,
            subject=employee, expiration_date=next_year, actor=user,
        )

        assert document.state == Document.STATE_APPROVED
        assert document.employee == employee
        assert document.uploaded_by == user
        assert document.mime_type == 'application/pdf'
        assert document.file_key.startswith(f'transportes-del-sur/employees/{employee.id}/documents/driving-license/')
        assert re.match(r"^\d{4}-\d{2}-\d{2}-driving-license-[0-9a-f]{8}\.pdf$", document.file_name)
        assert (local_storage / document.file_key).read_bytes() == PDF

        history = list(DocumentService.versions(document))
        assert [(v.number, v.action) for v in history] == [(1, DocumentVersion.ACTION_UPLOADED)]

    def test_upload_updates_compliance(self, company, employee, license_type, next_year):
        DocumentService.recalculate_status(company, employee)
        assert employee.status == ComplianceStatus.INCOMPLETE

        DocumentService.upload(company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year)

        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.COMPLETE

    def test_past_expiration_uploads_as_expired(self, company, employee, license_type):
        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF,
            subject=employee, expiration_date=date(2020, 1, 1),
        )

        assert document.state == Document.STATE_EXPIRED
        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.COMPLETE_EXPIRED_DOCS

    def test_expiring_type_needs_expiration_date(self, company, employee, license_type):
        with pytest.raises(ValidationError):
            DocumentService.upload(company, license_type.id, 'a.pdf', PDF, subject=employee)

    def test_expiration_is_dropped_for_non_expiring_types(self, company, employee, next_year):
        doc_type = make_type(company, 'ID card')

        document = DocumentService.upload(
            company, doc_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year
        )

        assert document.expiration_date is None

    def test_submit_leaves_document_for_review(self, company, employee, license_type, next_year):
        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF,
            subject=employee, expiration_date=next_year, submit=True,
        )

        assert document.state == Document.STATE_SUBMITTED
        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.INCOMPLETE

    def test_type_must_match_subject(self, company, license_type, next_year):
        vehicle = Vehicle.objects.create(company=company, domain='AB123CD')

        with pytest.raises(ValidationError):
            DocumentService.upload(
                company, license_type.id, 'a.pdf', PDF, subject=vehicle, expiration_date=next_year
            )

    def test_inactive_type_is_rejected(self, company, employee):
        doc_type = make_type(company, 'Old form', is_active=False)

        with pytest.raises(ValidationError):
            DocumentService.upload(company, doc_type.id, 'a.pdf', PDF, subject=employee)

    def test_type_of_other_company_is_not_found(self, company, other_company, employee):
        foreign = make_type(other_company, 'ID card')

        with pytest.raises(NotFoundError):
            DocumentService.upload(company, foreign.id, 'a.pdf', PDF, subject=employee)

    def test_disallowed_extension(self, company, employee, local_storage):
        doc_type = make_type(company, 'ID card')

        with pytest.raises(ValidationError):
            DocumentService.upload(company, doc_type.id, 'virus.exe', PDF, subject=employee)

        assert stored_files(local_storage) == []

    def test_oversized_file(self, company, employee, settings):
        settings.DOCUMENT_MAX_FILE_SIZE = 10
        doc_type = make_type(company, 'ID card')

        with pytest.raises(ValidationError):
            DocumentService.upload(company, doc_type.id, 'a.pdf', PDF, subject=employee)

    def test_storage_failure_writes_nothing(self, company, employee):
        doc_type = make_type(company, 'ID card')

        with mock.patch('apps.documents.services.storage.upload_file', side_effect=StorageError('down')):
            with pytest.raises(StorageError):
                DocumentService.upload(company, doc_type.id, 'a.pdf', PDF, subject=employee)

        assert not Document.objects.exists()

    def test_database_failure_discards_new_file(self, company, employee, local_storage):
        doc_type = make_type(company, 'ID card')

        with mock.patch.object(DocumentService, '_add_version', side_effect=DatabaseError('gone')):
            with pytest.raises(PersistenceError):
                DocumentService.upload(company, doc_type.id, 'a.pdf', PDF, subject=employee)

        assert not Document.objects.exists()
        assert stored_files(local_storage) == []


@pytest.mark.django_db
class TestMonthlyDocuments:

    @pytest.fixture
    def payslip_type(self, company):
        return make_type(company, 'Payslip', is_mandatory=True, is_monthly=True)

    @pytest.mark.parametrize('period', [None, '', '2024-13', '2024-1', '24-01', '2024/01'])
    def test_period_must_be_year_month(self, company, employee, payslip_type, period):
        with pytest.raises(ValidationError):
            DocumentService.upload(company, payslip_type.id, 'a.pdf', PDF, subject=employee, period=period)

    def test_each_period_is_its_own_document(self, company, employee, payslip_type, local_storage):
        january = DocumentService.upload(
            company, payslip_type.id, 'a.pdf', PDF, subject=employee, period='2024-01'
        )
        february = DocumentService.upload(
            company, payslip_type.id, 'a.pdf', PDF, subject=employee, period='2024-02'
        )

        assert january.id != february.id
        assert '/payslip/2024-02/' in february.file_key

    def test_period_rejected_for_permanent_types(self, company, employee):
        doc_type = make_type(company, 'ID card')

        with pytest.raises(ValidationError):
            DocumentService.upload(company, doc_type.id, 'a.pdf', PDF, subject=employee, period='2024-01')

    def test_monthly_types_do_not_count_for_compliance(self, company, employee, payslip_type):
        assert DocumentService.compliance_status(company, employee) == ComplianceStatus.COMPLETE


@pytest.mark.django_db
class TestVersions:

    def _upload(self, company, doc_type, employee, expiration, action=None):
        return DocumentService.upload(
            company, doc_type.id, 'a.pdf', PDF,
            subject=employee, expiration_date=expiration, action=action,
        )

    def test_renew_keeps_previous_version(self, company, employee, license_type, next_year, local_storage):
        first = self._upload(company, license_type, employee, next_year - timedelta(days=200))
        first_key = first.file_key

        renewed = self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_RENEWED)

        assert renewed.id == first.id
        assert renewed.expiration_date == next_year
        history = list(DocumentService.versions(renewed))
        assert [v.action for v in history] == [DocumentVersion.ACTION_RENEWED, DocumentVersion.ACTION_UPLOADED]
        assert (local_storage / first_key).exists()
        assert (local_storage / renewed.file_key).exists()

    def test_replace_discards_previous_version(self, company, employee, license_type, next_year, local_storage):
        first = self._upload(company, license_type, employee, next_year)
        first_key = first.file_key

        replaced = self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_REPLACED)

        history = list(DocumentService.versions(replaced))
        assert [v.action for v in history] == [DocumentVersion.ACTION_REPLACED]
        assert not (local_storage / first_key).exists()
        assert stored_files(local_storage) == [replaced.file_key]

    def test_replace_is_the_default(self, company, employee, license_type, next_year):
        self._upload(company, license_type, employee, next_year)
        document = self._upload(company, license_type, employee, next_year)

        assert DocumentService.versions(document).count() == 1

    def test_unknown_action(self, company, employee, license_type, next_year):
        with pytest.raises(ValidationError):
            self._upload(company, license_type, employee, next_year, 'UPLOADED')

    def test_revert_single_version_deletes_document(self, company, employee, license_type,
                                                    next_year, local_storage):
        document = self._upload(company, license_type, employee, next_year)

        assert DocumentService.revert(company, document.id) is None

        assert not Document.objects_with_deleted.filter(id=document.id).exists()
        assert stored_files(local_storage) == []
        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.INCOMPLETE

    def test_revert_restores_previous_version(self, company, user, employee, license_type,
                                              next_year, local_storage):
        old_expiration = next_year - timedelta(days=200)
        first = self._upload(company, license_type, employee, old_expiration)
        first_key, first_name = first.file_key, first.file_name
        renewed = self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_RENEWED)
        renewed_key = renewed.file_key

        restored = DocumentService.revert(company, renewed.id, actor=user)

        assert restored.file_key == first_key
        assert restored.expiration_date == old_expiration
        assert not (local_storage / renewed_key).exists()
        assert (local_storage / first_key).exists()

        assert [v.action for v in DocumentService.versions(restored)] == [DocumentVersion.ACTION_UPLOADED]
        marker = restored.history.get(action=DocumentVersion.ACTION_DELETED)
        assert marker.reason == f'Current version removed. Restored: {first_name}'
        assert marker.changed_by == user
        assert marker.file_key == ''

    def test_revert_restores_reviewed_state(self, company, employee, license_type, next_year):
        submitted = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year, submit=True
        )
        DocumentService.review(company, submitted.id, approve=True)
        renewed = self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_RENEWED)

        restored = DocumentService.revert(company, renewed.id)

        assert restored.state == Document.STATE_APPROVED
        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.COMPLETE

    def test_revert_restores_expired_state(self, company, employee, license_type, next_year):
        document = self._upload(company, license_type, employee, next_year)
        DocumentService.mark_expired(company, document.id)
        renewed = self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_RENEWED)

        restored = DocumentService.revert(company, renewed.id)

        assert restored.state == Document.STATE_EXPIRED

    def test_delete_removes_document_and_files(self, company, employee, license_type, next_year, local_storage):
        document = self._upload(company, license_type, employee, next_year)
        self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_RENEWED)

        DocumentService.delete(company, document.id)

        assert not Document.objects_with_deleted.filter(id=document.id).exists()
        assert not DocumentVersion.objects_with_deleted.filter(document_id=document.id).exists()
        assert stored_files(local_storage) == []

    def test_delete_survives_storage_failure(self, company, employee, license_type, next_year):
        document = self._upload(company, license_type, employee, next_year)

        with mock.patch('apps.documents.services.storage.delete_file', side_effect=StorageError('down')):
            DocumentService.delete(company, document.id)

        assert not Document.objects.filter(id=document.id).exists()

    def test_download_url_for_version(self, company, employee, license_type, next_year):
        first = self._upload(company, license_type, employee, next_year)
        first_version = DocumentService.versions(first).get()
        self._upload(company, license_type, employee, next_year, DocumentVersion.ACTION_RENEWED)

        result = DocumentService.get_download_url(company, first.id, version_id=first_version.id)

        assert result['file_name'] == first_version.file_name
        assert result['url'].startswith('/v1/documents/files/')
        assert result['expires_in'] == 3600


@pytest.mark.django_db
class TestReviewAndExpiry:

    def test_request_then_upload_then_review(self, company, user, employee, license_type, next_year):
        requested = DocumentService.request_document(company, license_type.id, subject=employee)
        assert requested.state == Document.STATE_PENDING

        with pytest.raises(ConflictError):
            DocumentService.request_document(company, license_type.id, subject=employee)

        with pytest.raises(ValidationError):
            DocumentService.review(company, requested.id, approve=True)

        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF,
            subject=employee, expiration_date=next_year, submit=True,
        )
        assert document.id == requested.id
        assert DocumentService.versions(document).get().action == DocumentVersion.ACTION_UPLOADED

        reviewed = DocumentService.review(company, document.id, approve=True, notes='ok', actor=user)
        assert reviewed.state == Document.STATE_APPROVED
        assert reviewed.reviewed_by == user
        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.COMPLETE

    def test_reject(self, company, employee, license_type, next_year):
        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF,
            subject=employee, expiration_date=next_year, submit=True,
        )

        rejected = DocumentService.review(company, document.id, approve=False, notes='Blurry')

        assert rejected.state == Document.STATE_REJECTED
        assert rejected.review_notes == 'Blurry'

    def test_approved_documents_cannot_be_reviewed(self, company, employee, license_type, next_year):
        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year
        )

        with pytest.raises(ValidationError):
            DocumentService.review(company, document.id, approve=False)

    def test_mark_expired(self, company, employee, license_type, next_year):
        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year
        )

        expired = DocumentService.mark_expired(company, document.id)
        again = DocumentService.mark_expired(company, document.id)

        assert expired.state == again.state == Document.STATE_EXPIRED
        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.COMPLETE_EXPIRED_DOCS

    def test_only_approved_documents_expire(self, company, employee, license_type):
        document = DocumentService.request_document(company, license_type.id, subject=employee)

        with pytest.raises(ValidationError):
            DocumentService.mark_expired(company, document.id)

    def test_expire_due(self, company, employee, license_type, next_year):
        vehicle_type = make_type(
            company, 'Insurance', applies_to=DocumentType.APPLIES_TO_EQUIPMENT, has_expiration=True
        )
        vehicle = Vehicle.objects.create(company=company, domain='AB123CD')
        DocumentService.upload(company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year)
        DocumentService.upload(company, vehicle_type.id, 'a.pdf', PDF, subject=vehicle, expiration_date=next_year)

        assert DocumentService.expire_due(today=next_year) == 0
        assert DocumentService.expire_due(today=next_year + timedelta(days=1)) == 2
        assert DocumentService.expire_due(today=next_year + timedelta(days=1)) == 0
        assert not Document.objects.filter(state=Document.STATE_APPROVED).exists()

    def test_expire_task(self, company, employee, license_type):
        from apps.documents.tasks import expire_documents

        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF,
            subject=employee, expiration_date=timezone.localdate() + timedelta(days=1),
        )
        Document.objects.filter(id=document.id).update(expiration_date=date(2020, 1, 1))

        assert expire_documents.apply().get() == {'expired': 1}


@pytest.mark.django_db
class TestCompliance:

    def test_passed_expiration_counts_before_the_nightly_job(self, company, employee, license_type, next_year):
        document = DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year
        )
        Document.objects.filter(id=document.id).update(expiration_date=date(2020, 1, 1))

        result = DocumentService.compliance(company, employee)

        assert result['status'] == ComplianceStatus.COMPLETE_EXPIRED_DOCS
        assert [d['name'] for d in result['expired_documents']] == ['Driving license']

    def test_missing_wins_over_expired(self, company, employee, license_type):
        make_type(company, 'ID card', is_mandatory=True)
        DocumentService.upload(
            company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=date(2020, 1, 1)
        )

        result = DocumentService.compliance(company, employee)

        assert result['status'] == ComplianceStatus.INCOMPLETE
        assert [d['name'] for d in result['missing_documents']] == ['ID card']
        assert [d['name'] for d in result['expired_documents']] == ['Driving license']

    def test_optional_types_are_ignored(self, company, employee):
        make_type(company, 'Course certificate')

        assert DocumentService.compliance_status(company, employee) == ComplianceStatus.COMPLETE

    def test_gender_condition_excludes_other_subjects(self, company):
        make_type(company, 'Maternity certificate', is_mandatory=True, is_conditional=True, genders=['FEMALE'])
        male = Employee.objects.create(
            company=company, employee_number='7', first_name='Luis', last_name='Soto', gender='MALE'
        )
        female = Employee.objects.create(
            company=company, employee_number='8', first_name='Eva', last_name='Soto', gender='FEMALE'
        )

        assert DocumentService.compliance(company, male)['missing_documents'] == []
        assert DocumentService.compliance_status(company, male) == ComplianceStatus.COMPLETE
        assert DocumentService.compliance_status(company, female) == ComplianceStatus.INCOMPLETE

    def test_deleted_brand_keeps_condition(self, company):
        from apps.core.catalog import CatalogService
        from apps.equipment.models import VehicleBrand
        brand_x = VehicleBrand.objects.create(company=company, name='X')
        brand_y = VehicleBrand.objects.create(company=company, name='Y')
        inspection = make_type(
            company, 'X inspection', applies_to=DocumentType.APPLIES_TO_EQUIPMENT,
            is_mandatory=True, is_conditional=True,
        )
        inspection.condition_vehicle_brands.add(brand_x)
        vehicle = Vehicle.objects.create(company=company, domain='AB123CD', brand=brand_y)

        CatalogService.delete_entry(brand_x)

        assert DocumentService.applicable_types(company, vehicle) == []
        assert DocumentService.compliance_status(company, vehicle) == ComplianceStatus.COMPLETE

    def test_shared_document_completes_every_employee(self, company, employee):
        other = Employee.objects.create(company=company, employee_number='2', first_name='Juan', last_name='Paz')
        policy = make_type(company, 'Safety policy', is_mandatory=True, is_multi_resource=True)
        DocumentService.recalculate_status(company, employee)
        DocumentService.recalculate_status(company, other)

        DocumentService.upload(company, policy.id, 'policy.pdf', PDF)

        for each in (employee, other):
            each.refresh_from_db()
            assert each.status == ComplianceStatus.COMPLETE

    def test_shared_type_rejects_subject(self, company, employee):
        policy = make_type(company, 'Safety policy', is_multi_resource=True)

        with pytest.raises(ValidationError):
            DocumentService.upload(company, policy.id, 'policy.pdf', PDF, subject=employee)

    def test_company_documents(self, company, local_storage):
        statute = make_type(company, 'Company statute', applies_to=DocumentType.APPLIES_TO_COMPANY)

        document = DocumentService.upload(company, statute.id, 'statute.pdf', PDF)

        assert document.subject is None
        assert document.file_key.startswith('transportes-del-sur/company/documents/company-statute/')
        assert list(DocumentService.list_documents(company, applies_to=DocumentType.APPLIES_TO_COMPANY)) == [document]

    def test_summary_and_pending(self, company, employee, license_type, next_year):
        id_card = make_type(company, 'ID card', is_mandatory=True)
        make_type(company, 'Course certificate')
        DocumentService.upload(company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year)

        summary = DocumentService.summary(company, employee)

        assert summary['total'] == 1
        assert summary['approved'] == 1
        assert summary['mandatory'] == 2
        assert summary['mandatory_completed'] == 1
        assert DocumentService.pending_types(company, employee) == [id_card]

    def test_available_types_skip_approved_and_shared(self, company, employee, license_type, next_year):
        id_card = make_type(company, 'ID card')
        payslip = make_type(company, 'Payslip', is_monthly=True)
        make_type(company, 'Safety policy', is_multi_resource=True)
        DocumentService.upload(company, license_type.id, 'a.pdf', PDF, subject=employee, expiration_date=next_year)
        DocumentService.upload(company, payslip.id, 'a.pdf', PDF, subject=employee, period='2024-01')

        available = DocumentService.available_types_for_upload(company, employee)

        assert set(available) == {id_card, payslip}


@pytest.mark.django_db
class TestDocumentTypeService:

    def test_create_with_conditions(self, company):
        from apps.hr.models import JobPosition
        driver = JobPosition.objects.create(company=company, name='Chofer')

        doc_type = DocumentTypeService.create_document_type(
            company,
            {'name': 'Driving license', 'applies_to': 'EMPLOYEE', 'is_conditional': True},
            conditions={'job_position_ids': [driver.id], 'genders': ['FEMALE', 'FEMALE']},
        )

        assert doc_type.slug == 'driving-license'
        assert list(doc_type.condition_job_positions.all()) == [driver]
        assert doc_type.genders == ['FEMALE']

    def test_conditions_are_dropped_when_not_conditional(self, company):
        doc_type = DocumentTypeService.create_document_type(
            company, {'name': 'ID card', 'applies_to': 'EMPLOYEE'}, conditions={'genders': ['MALE']}
        )

        assert doc_type.genders == []

    def test_unknown_condition_entry(self, company, other_company):
        from apps.hr.models import JobPosition
        foreign = JobPosition.objects.create(company=other_company, name='Chofer')

        with pytest.raises(ValidationError):
            DocumentTypeService.create_document_type(
                company,
                {'name': 'Driving license', 'applies_to': 'EMPLOYEE', 'is_conditional': True},
                conditions={'job_position_ids': [foreign.id]},
            )

        assert not DocumentType.objects.filter(company=company).exists()

    def test_unknown_gender(self, company):
        with pytest.raises(ValidationError):
            DocumentTypeService.create_document_type(
                company,
                {'name': 'Driving license', 'applies_to': 'EMPLOYEE', 'is_conditional': True},
                conditions={'genders': ['OTHER']},
            )

    def test_company_types_are_never_shared_or_conditional(self, company):
        doc_type = DocumentTypeService.create_document_type(company, {
            'name': 'Statute', 'applies_to': 'COMPANY', 'is_multi_resource': True, 'is_conditional': True,
        })

        assert not doc_type.is_multi_resource
        assert not doc_type.is_conditional

    def test_duplicate_name(self, company):
        DocumentTypeService.create_document_type(company, {'name': 'ID card', 'applies_to': 'EMPLOYEE'})

        with pytest.raises(ConflictError):
            DocumentTypeService.create_document_type(company, {'name': 'id CARD', 'applies_to': 'EQUIPMENT'})

    def test_target_is_fixed_once_documents_exist(self, company, employee):
        doc_type = make_type(company, 'ID card')
        DocumentService.upload(company, doc_type.id, 'a.pdf', PDF, subject=employee)

        with pytest.raises(ConflictError):
            DocumentTypeService.update_document_type(company, doc_type.id, {'applies_to': 'EQUIPMENT'})

        with pytest.raises(ConflictError):
            DocumentTypeService.delete_document_type(company, doc_type.id)

    def test_making_type_mandatory_updates_status(self, company, employee):
        doc_type = make_type(company, 'ID card')
        DocumentService.recalculate_status(company, employee)
        assert employee.status == ComplianceStatus.COMPLETE

        DocumentTypeService.update_document_type(company, doc_type.id, {'is_mandatory': True})

        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.INCOMPLETE

    def test_moving_type_to_equipment_updates_employees(self, company, employee):
        doc_type = make_type(company, 'ID card', is_mandatory=True)
        DocumentService.recalculate_status(company, employee)
        assert employee.status == ComplianceStatus.INCOMPLETE

        DocumentTypeService.update_document_type(company, doc_type.id, {'applies_to': 'EQUIPMENT'})

        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.COMPLETE
        assert DocumentService.compliance_status(company, employee) == ComplianceStatus.COMPLETE

    def test_new_mandatory_type_updates_status(self, company, employee):
        DocumentService.recalculate_status(company, employee)
        assert employee.status == ComplianceStatus.COMPLETE

        DocumentTypeService.create_document_type(
            company, {'name': 'ID card', 'applies_to': 'EMPLOYEE', 'is_mandatory': True}
        )

        employee.refresh_from_db()
        assert employee.status == ComplianceStatus.INCOMPLETE

    def test_tab_counts(self, company):
        make_type(company, 'ID card')
        make_type(company, 'VTV', applies_to=DocumentType.APPLIES_TO_EQUIPMENT)

        assert DocumentTypeService.tab_counts(company) == {
            'all': 2, 'employee': 1, 'equipment': 1, 'company': 0,
        }
