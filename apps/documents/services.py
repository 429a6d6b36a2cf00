"""
Document lifecycle and document type services.

Upload, renew, replace, revert, delete, review and expire documents of
employees, vehicles and the company, and derive each subject's
compliance status from the mandatory types that apply to it.

Files live in object storage and rows in the database; the two are not
written atomically. Files are stored before the row changes, and files
that are no longer referenced are removed after it; a failed removal is
logged and leaves an orphaned file rather than failing the operation.
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Max, ProtectedError, Q
from django.utils import timezone
from django.utils.text import slugify

from apps.core.exceptions import ConflictError, NotFoundError, ValidationError
from apps.core.persistence import persistence_errors
from apps.documents import storage
from apps.documents.conditions import RuleSet, snapshot_for
from apps.documents.models import Document, DocumentType, DocumentVersion
from apps.documents.paths import content_type_for, document_filename, document_key, validate_file
from apps.equipment.models import Vehicle, VehicleBrand, VehicleType
from apps.hr.constants import ComplianceStatus, COST_TYPE_CHOICES, GENDER_CHOICES
from apps.hr.models import (
    Employee, JobPosition, ContractType, JobCategory, Union, CollectiveAgreement,
)

logger = logging.getLogger(__name__)

PERIOD_RE = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')

UPLOAD_ACTIONS = (DocumentVersion.ACTION_REPLACED, DocumentVersion.ACTION_RENEWED)

REVIEWABLE_STATES = (Document.STATE_PENDING, Document.STATE_SUBMITTED)


def _subject_kind(subject) -> str:
    if isinstance(subject, Employee):
        return DocumentType.APPLIES_TO_EMPLOYEE
    if isinstance(subject, Vehicle):
        return DocumentType.APPLIES_TO_EQUIPMENT
    return DocumentType.APPLIES_TO_COMPANY


def _subject_ids(subject) -> Dict[str, Any]:
    return {
        'employee': subject if isinstance(subject, Employee) else None,
        'vehicle': subject if isinstance(subject, Vehicle) else None,
    }


def _actor(user):
    return user if getattr(user, 'is_authenticated', False) else None


def _discard_files(keys: Iterable[str], document_id):
    """Remove stored files that no row references anymore."""
    for key in dict.fromkeys(k for k in keys if k):
        try:
            storage.delete_file(key)
        except Exception as e:
            logger.warning(
                "Could not delete stored file",
                extra={'key': key, 'document_id': str(document_id), 'error': str(e)}
            )


class DocumentService:
    """Lifecycle of documents and compliance of their subjects."""

    # ===== LOOKUPS =====

    @staticmethod
    def resolve_subject(company, employee_id=None, vehicle_id=None):
        """The Employee or Vehicle of the company named by the request, or None."""
        if employee_id and vehicle_id:
            raise ValidationError('A document belongs to an employee or a vehicle, not both')
        try:
            if employee_id:
                return Employee.objects.for_company(company).get(id=employee_id)
            if vehicle_id:
                return Vehicle.objects.for_company(company).get(id=vehicle_id)
        except (Employee.DoesNotExist, Vehicle.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(
                'Subject not found',
                {'employee_id': str(employee_id or ''), 'vehicle_id': str(vehicle_id or '')}
            )
        return None

    @staticmethod
    def list_documents(company, subject=None, document_type_id=None, state=None,
                       period=None, applies_to=None):
        queryset = Document.objects.for_company(company).select_related(
            'document_type', 'employee', 'vehicle'
        )
        if subject is not None:
            queryset = queryset.for_subject(subject)
        if applies_to:
            queryset = queryset.filter(document_type__applies_to=applies_to)
        if document_type_id:
            queryset = queryset.filter(document_type_id=document_type_id)
        if state:
            queryset = queryset.filter(state=state)
        if period:
            queryset = queryset.filter(period=period)
        return queryset.order_by('-updated_at')

    @staticmethod
    def get_document(company, document_id) -> Document:
        try:
            return Document.objects.for_company(company).select_related(
                'document_type', 'employee', 'vehicle'
            ).get(id=document_id)
        except (Document.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Document not found', {'document_id': str(document_id)})

    @staticmethod
    def versions(document: Document):
        """File-bearing history entries, newest first."""
        return document.history.exclude(action=DocumentVersion.ACTION_DELETED).order_by('-number')

    # ===== UPLOAD =====

    @staticmethod
    def _check_upload(document_type: DocumentType, subject, period: Optional[str], expiration_date,
                      needs_file: bool = True):
        kind = _subject_kind(subject)
        if document_type.applies_to == DocumentType.APPLIES_TO_COMPANY or document_type.is_multi_resource:
            if subject is not None:
                raise ValidationError(
                    'This document type is not uploaded per employee or vehicle',
                    {'document_type_id': str(document_type.id)}
                )
        elif kind != document_type.applies_to:
            raise ValidationError(
                f'This document type applies to {document_type.get_applies_to_display().lower()} records',
                {'document_type_id': str(document_type.id)}
            )

        if not document_type.is_active:
            raise ValidationError('Document type is inactive', {'document_type_id': str(document_type.id)})

        if document_type.is_monthly:
            if not period or not PERIOD_RE.match(period):
                raise ValidationError('Monthly documents need a period in YYYY-MM format', {'period': period})
        elif period:
            raise ValidationError('Only monthly documents take a period', {'period': period})

        if needs_file and document_type.has_expiration and not expiration_date:
            raise ValidationError('This document type needs an expiration date')

    @staticmethod
    def _state_for(document_type: DocumentType, expiration_date, submit: bool) -> str:
        if submit:
            return Document.STATE_SUBMITTED
        if document_type.has_expiration and expiration_date and expiration_date < timezone.localdate():
            return Document.STATE_EXPIRED
        return Document.STATE_APPROVED

    @classmethod
    def upload(cls, company, document_type_id, file_name: str, content: bytes, subject=None,
               period: Optional[str] = None, expiration_date=None, action: Optional[str] = None,
               submit: bool = False, actor=None) -> Document:
        """
        Upload a file for a document, creating the document if needed.

        The document is identified by (type, subject, period). A new
        document gets an UPLOADED version. For an existing one, RENEWED
        appends a version and keeps the previous file; REPLACED (the
        default) appends a version and discards the previous one together
        with its file.

        Args:
            company: Active company
            document_type_id: Type of the document
            file_name: Original file name, used for the extension
            content: File bytes
            subject: Employee, Vehicle, or None for company and shared documents
            period: ``YYYY-MM`` for monthly types
            expiration_date: Required by expiring types
            action: RENEWED or REPLACED for existing documents
            submit: Leave the document SUBMITTED for review instead of APPROVED
            actor: Uploading user

        Returns:
            Document: The created or updated document

        Raises:
            ValidationError: Type/subject mismatch, missing period or
                expiration date, or a rejected file
            StorageError: The file could not be stored
        """
        document_type = DocumentTypeService.get_document_type(company, document_type_id)
        period = period or ''
        cls._check_upload(document_type, subject, period, expiration_date)
        validate_file(file_name, len(content))

        action = action or DocumentVersion.ACTION_REPLACED
        if action not in UPLOAD_ACTIONS:
            raise ValidationError(f"Unknown upload action '{action}'", {'action': action})

        stored_name = document_filename(document_type.name, file_name)
        mime_type = content_type_for(file_name)
        key = storage.upload_file(
            document_key(company, subject, document_type, stored_name, period),
            content,
            mime_type,
        )

        file_data = {
            'file_key': key,
            'file_name': stored_name,
            'file_size': len(content),
            'mime_type': mime_type,
            'expiration_date': expiration_date if document_type.has_expiration else None,
        }
        state = cls._state_for(document_type, file_data['expiration_date'], submit)
        user = _actor(actor)
        discarded = []

        try:
            with persistence_errors('upload document', company_id=str(company.id),
                                    document_type_id=str(document_type.id), period=period):
                with transaction.atomic():
                    document = Document.objects.select_for_update().filter(
                        company=company, document_type=document_type, period=period,
                        **_subject_ids(subject)
                    ).first()

                    if document is None:
                        document = Document.objects.create(
                            company=company,
                            document_type=document_type,
                            period=period,
                            state=state,
                            uploaded_by=user,
                            **_subject_ids(subject),
                            **file_data,
                        )
                        version_action = DocumentVersion.ACTION_UPLOADED
                    else:
                        version_action = action if document.file_key else DocumentVersion.ACTION_UPLOADED
                        if action == DocumentVersion.ACTION_REPLACED:
                            current = cls.versions(document).first()
                            discarded.append(document.file_key)
                            if current is not None:
                                discarded.append(current.file_key)
                                current.hard_delete()

                        for field, value in file_data.items():
                            setattr(document, field, value)
                        document.state = state
                        document.uploaded_by = user
                        document.reviewed_by = None
                        document.reviewed_at = None
                        document.review_notes = ''
                        document.save()

                    cls._add_version(document, version_action, user)
        except Exception:
            # The row never referenced the new file
            _discard_files([key], document_id=None)
            raise

        _discard_files([k for k in discarded if k != key], document.id)
        cls.recalculate_for(company, document_type, subject)

        logger.info(
            "Document uploaded",
            extra={
                'company_id': str(company.id),
                'document_id': str(document.id),
                'document_type_id': str(document_type.id),
                'upload_action': version_action,
            }
        )
        return document

    @staticmethod
    def _add_version(document: Document, action: str, user, reason: str = '') -> DocumentVersion:
        last = document.history.aggregate(last=Max('number'))['last'] or 0
        if action == DocumentVersion.ACTION_DELETED:
            file_data = {}
        else:
            file_data = {
                'file_key': document.file_key,
                'file_name': document.file_name,
                'file_size': document.file_size,
                'mime_type': document.mime_type,
                'expiration_date': document.expiration_date,
            }
        return DocumentVersion.objects.create(
            document=document,
            number=last + 1,
            action=action,
            state=document.state,
            period=document.period,
            reason=reason,
            changed_by=user,
            **file_data,
        )

    @classmethod
    def request_document(cls, company, document_type_id, subject=None, period: Optional[str] = None) -> Document:
        """Create a PENDING document without a file, to be uploaded later."""
        document_type = DocumentTypeService.get_document_type(company, document_type_id)
        period = period or ''
        cls._check_upload(document_type, subject, period, None, needs_file=False)

        existing = Document.objects.filter(
            company=company, document_type=document_type, period=period, **_subject_ids(subject)
        )
        if existing.exists():
            raise ConflictError('The document already exists', {'document_type_id': str(document_type.id)})

        with persistence_errors('request document', company_id=str(company.id)):
            document = Document.objects.create(
                company=company,
                document_type=document_type,
                period=period,
                state=Document.STATE_PENDING,
                **_subject_ids(subject),
            )
        cls.recalculate_for(company, document_type, subject)
        return document

    # ===== REVERT / DELETE =====

    @classmethod
    def revert(cls, company, document_id, actor=None) -> Optional[Document]:
        """
        Drop the newest version of a document and restore the previous one.

        A document with a single version is deleted altogether.

        Returns:
            The restored document, or None when it was deleted
        """
        document = cls.get_document(company, document_id)
        versions = list(cls.versions(document)[:2])
        if len(versions) < 2:
            cls.delete(company, document.id, actor=actor)
            return None

        current, previous = versions
        removed_keys = [current.file_key, document.file_key]
        if previous.file_key in removed_keys:
            removed_keys = [k for k in removed_keys if k != previous.file_key]

        with persistence_errors('revert document', document_id=str(document.id)):
            with transaction.atomic():
                current.hard_delete()
                document.state = previous.state
                document.file_key = previous.file_key
                document.file_name = previous.file_name
                document.file_size = previous.file_size
                document.mime_type = previous.mime_type
                document.expiration_date = previous.expiration_date
                document.save()
                cls._add_version(
                    document,
                    DocumentVersion.ACTION_DELETED,
                    _actor(actor),
                    reason=f"Current version removed. Restored: {previous.file_name}"[:255],
                )

        _discard_files(removed_keys, document.id)
        cls.recalculate_for(company, document.document_type, document.subject)

        logger.info(
            "Document reverted",
            extra={
                'company_id': str(company.id),
                'document_id': str(document.id),
                'restored_version': previous.number,
            }
        )
        return document

    @classmethod
    def delete(cls, company, document_id, actor=None):
        """Delete a document, its history and every stored file it referenced."""
        document = cls.get_document(company, document_id)
        document_type, subject = document.document_type, document.subject
        keys = [document.file_key] + list(document.history.values_list('file_key', flat=True))

        with persistence_errors('delete document', document_id=str(document_id)):
            with transaction.atomic():
                document.hard_delete()

        _discard_files(keys, document_id)
        cls.recalculate_for(company, document_type, subject)

        logger.info(
            "Document deleted",
            extra={
                'company_id': str(company.id),
                'document_id': str(document_id),
                'actor_id': str(actor.id) if _actor(actor) else None,
            }
        )

    # ===== STATE CHANGES =====

    @classmethod
    def review(cls, company, document_id, approve: bool, notes: Optional[str] = None,
               actor=None) -> Document:
        document = cls.get_document(company, document_id)
        if document.state not in REVIEWABLE_STATES:
            raise ValidationError(
                f'Only pending or submitted documents can be reviewed (state is {document.state})',
                {'state': document.state}
            )
        if approve and not document.file_key:
            raise ValidationError('A document without a file cannot be approved')

        document.state = Document.STATE_APPROVED if approve else Document.STATE_REJECTED
        document.reviewed_by = _actor(actor)
        document.reviewed_at = timezone.now()
        document.review_notes = notes or ''
        with persistence_errors('review document', document_id=str(document.id)):
            with transaction.atomic():
                document.save(update_fields=['state', 'reviewed_by', 'reviewed_at', 'review_notes', 'updated_at'])
                cls._sync_version_state(document)

        cls.recalculate_for(company, document.document_type, document.subject)
        return document

    @classmethod
    def _sync_version_state(cls, document: Document):
        # A revert restores the state its version held when it was superseded
        current = cls.versions(document).first() if document.file_key else None
        if current is not None and current.state != document.state:
            current.state = document.state
            current.save(update_fields=['state', 'updated_at'])

    @classmethod
    def mark_expired(cls, company, document_id) -> Document:
        document = cls.get_document(company, document_id)
        if document.state == Document.STATE_EXPIRED:
            return document
        if document.state != Document.STATE_APPROVED:
            raise ValidationError(
                'Only approved documents can expire', {'state': document.state}
            )

        document.state = Document.STATE_EXPIRED
        with persistence_errors('expire document', document_id=str(document.id)):
            with transaction.atomic():
                document.save(update_fields=['state', 'updated_at'])
                cls._sync_version_state(document)
        cls.recalculate_for(company, document.document_type, document.subject)

        logger.info(
            "Document marked as expired",
            extra={'company_id': str(company.id), 'document_id': str(document.id)}
        )
        return document

    @classmethod
    def expire_due(cls, today=None) -> int:
        """Expire every approved document whose expiration date has passed."""
        today = today or timezone.localdate()
        due = Document.objects.filter(
            state=Document.STATE_APPROVED,
            document_type__has_expiration=True,
            expiration_date__lt=today,
        ).select_related('company')

        expired = 0
        for document in due.iterator():
            cls.mark_expired(document.company, document.id)
            expired += 1
        return expired

    # ===== DOWNLOADS =====

    @classmethod
    def get_download_url(cls, company, document_id, version_id=None) -> Dict[str, Any]:
        document = cls.get_document(company, document_id)
        if version_id:
            try:
                entry = cls.versions(document).get(id=version_id)
            except (DocumentVersion.DoesNotExist, ValueError, TypeError):
                raise NotFoundError('Version not found', {'version_id': str(version_id)})
            key, name = entry.file_key, entry.file_name
        else:
            key, name = document.file_key, document.file_name

        if not key:
            raise ValidationError('The document has no file', {'document_id': str(document.id)})

        url = storage.get_presigned_download_url(key, file_name=name)
        return {'url': url, 'file_name': name, 'expires_in': settings.PRESIGNED_URL_EXPIRES}

    # ===== COMPLIANCE =====

    @staticmethod
    def _types_for(company, kind: str):
        return DocumentType.objects.for_company(company).filter(
            applies_to=kind, is_active=True
        ).prefetch_related(
            'condition_job_positions', 'condition_contract_types', 'condition_job_categories',
            'condition_unions', 'condition_collective_agreements',
            'condition_vehicle_brands', 'condition_vehicle_types',
        )

    @classmethod
    def applicable_types(cls, company, subject, **filters) -> List[DocumentType]:
        """Active types of the subject's kind whose conditions the subject meets."""
        kind = _subject_kind(subject)
        snapshot = snapshot_for(subject)
        types = cls._types_for(company, kind).filter(**filters)
        if snapshot is None:
            return list(types)
        return [t for t in types if RuleSet.for_document_type(t).applies_to(snapshot)]

    @staticmethod
    def _relevant_documents(company, subject):
        """The subject's own documents plus those shared by its whole kind."""
        shared = Q(
            employee__isnull=True,
            vehicle__isnull=True,
            document_type__is_multi_resource=True,
            document_type__applies_to=_subject_kind(subject),
        )
        if subject is None:
            return Document.objects.for_company(company).for_subject(None)
        return Document.objects.for_company(company).filter(Q(**_subject_ids(subject)) | shared)

    @classmethod
    def compliance(cls, company, subject) -> Dict[str, Any]:
        """
        Compliance of a subject against its permanent mandatory types.

        Monthly types are not considered. A type is completed by an
        APPROVED document, expired by an EXPIRED one and missing otherwise.
        """
        types = cls.applicable_types(company, subject, is_mandatory=True, is_monthly=False)
        today = timezone.localdate()
        best = {}
        for document in cls._relevant_documents(company, subject).select_related('document_type'):
            if best.get(document.document_type_id) != Document.STATE_APPROVED:
                best[document.document_type_id] = document.effective_state(today)

        missing, expired, completed = [], [], []
        for document_type in types:
            entry = {'id': str(document_type.id), 'name': document_type.name}
            state = best.get(document_type.id)
            if state == Document.STATE_APPROVED:
                completed.append(entry)
            elif state == Document.STATE_EXPIRED:
                expired.append(entry)
            else:
                missing.append(entry)

        if missing:
            status = ComplianceStatus.INCOMPLETE
        elif expired:
            status = ComplianceStatus.COMPLETE_EXPIRED_DOCS
        else:
            status = ComplianceStatus.COMPLETE

        return {
            'status': status,
            'missing_documents': missing,
            'expired_documents': expired,
            'completed_documents': completed,
        }

    @classmethod
    def compliance_status(cls, company, subject) -> str:
        return cls.compliance(company, subject)['status']

    @classmethod
    def recalculate_status(cls, company, subject) -> Optional[str]:
        """Write the compliance status back to an Employee or Vehicle."""
        if subject is None:
            return None
        status = cls.compliance_status(company, subject)
        if subject.status != status:
            type(subject).objects.filter(id=subject.id).update(status=status, updated_at=timezone.now())
            subject.status = status
            logger.info(
                "Compliance status recalculated",
                extra={
                    'company_id': str(company.id),
                    'subject_type': type(subject).__name__.lower(),
                    'subject_id': str(subject.id),
                    'status': status,
                }
            )
        return status

    @classmethod
    def recalculate_for(cls, company, document_type: DocumentType, subject):
        """Recalculate every subject a document change can affect."""
        if subject is not None:
            cls.recalculate_status(company, subject)
            return
        if not document_type.is_multi_resource:
            return
        model = Employee if document_type.applies_to == DocumentType.APPLIES_TO_EMPLOYEE else Vehicle
        for each in model.objects.for_company(company).filter(is_active=True):
            cls.recalculate_status(company, each)

    @classmethod
    def summary(cls, company, subject) -> Dict[str, int]:
        documents = list(
            Document.objects.for_company(company).for_subject(subject).values_list('document_type_id', 'state')
        )
        mandatory_ids = {t.id for t in cls.applicable_types(company, subject, is_mandatory=True)}
        approved_ids = {
            type_id for type_id, state in cls._relevant_documents(company, subject).values_list(
                'document_type_id', 'state'
            ) if state == Document.STATE_APPROVED
        }
        return {
            'total': len(documents),
            'pending': sum(1 for _, state in documents if state == Document.STATE_PENDING),
            'approved': sum(1 for _, state in documents if state == Document.STATE_APPROVED),
            'expired': sum(1 for _, state in documents if state == Document.STATE_EXPIRED),
            'mandatory': len(mandatory_ids),
            'mandatory_completed': len(mandatory_ids & approved_ids),
        }

    @classmethod
    def pending_types(cls, company, subject) -> List[DocumentType]:
        """Applicable mandatory types without an approved document."""
        approved_ids = set(
            cls._relevant_documents(company, subject).approved().values_list('document_type_id', flat=True)
        )
        return [
            t for t in cls.applicable_types(company, subject, is_mandatory=True)
            if t.id not in approved_ids
        ]

    @classmethod
    def available_types_for_upload(cls, company, subject) -> List[DocumentType]:
        """
        Types the subject can receive an upload for: applicable, not shared
        and, unless monthly, not already approved.
        """
        approved_ids = set(
            Document.objects.for_company(company).for_subject(subject).approved()
            .values_list('document_type_id', flat=True)
        )
        filters = {} if subject is None else {'is_multi_resource': False}
        return [
            t for t in cls.applicable_types(company, subject, **filters)
            if t.is_monthly or t.id not in approved_ids
        ]


# DocumentType payload key -> (m2m attribute, catalog model)
CONDITION_RELATIONS = {
    'job_position_ids': ('condition_job_positions', JobPosition),
    'contract_type_ids': ('condition_contract_types', ContractType),
    'job_category_ids': ('condition_job_categories', JobCategory),
    'union_ids': ('condition_unions', Union),
    'collective_agreement_ids': ('condition_collective_agreements', CollectiveAgreement),
    'vehicle_brand_ids': ('condition_vehicle_brands', VehicleBrand),
    'vehicle_type_ids': ('condition_vehicle_types', VehicleType),
}

TYPE_FIELDS = (
    'name', 'description', 'applies_to', 'is_mandatory', 'has_expiration', 'is_monthly',
    'is_multi_resource', 'is_private', 'is_termination', 'is_active', 'is_conditional',
)


class DocumentTypeService:
    """Document types and their applicability conditions."""

    @staticmethod
    def list_document_types(company, applies_to=None, is_active=None, search=None):
        queryset = DocumentType.objects.for_company(company)
        if applies_to:
            queryset = queryset.filter(applies_to=applies_to)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if search:
            queryset = queryset.filter(name__icontains=search)
        return queryset.order_by('-is_mandatory', 'name')

    @staticmethod
    def get_document_type(company, document_type_id) -> DocumentType:
        try:
            return DocumentType.objects.for_company(company).get(id=document_type_id)
        except (DocumentType.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Document type not found', {'document_type_id': str(document_type_id)})

    @staticmethod
    def tab_counts(company) -> Dict[str, int]:
        queryset = DocumentType.objects.for_company(company)
        counts = {'all': queryset.count()}
        for value, _ in DocumentType.APPLIES_TO_CHOICES:
            counts[value.lower()] = queryset.filter(applies_to=value).count()
        return counts

    @staticmethod
    def _ensure_unique(company, name: str, slug: str, exclude_id=None):
        queryset = DocumentType.objects_with_deleted.for_company(company).filter(
            Q(name__iexact=name) | Q(slug=slug)
        )
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        if queryset.exists():
            raise ConflictError('A document type with this name already exists', {'name': name})

    @staticmethod
    def _check_choices(conditions: Dict[str, Any]):
        for key, choices in (('genders', GENDER_CHOICES), ('cost_types', COST_TYPE_CHOICES)):
            allowed = dict(choices)
            unknown = [value for value in conditions.get(key) or [] if value not in allowed]
            if unknown:
                raise ValidationError(f'Unknown {key} in conditions', {key: unknown})

    @classmethod
    def _replace_conditions(cls, company, document_type: DocumentType, conditions: Optional[Dict[str, Any]]):
        conditions = conditions if document_type.is_conditional else {}
        conditions = conditions or {}
        cls._check_choices(conditions)

        document_type.genders = list(dict.fromkeys(conditions.get('genders') or []))
        document_type.cost_types = list(dict.fromkeys(conditions.get('cost_types') or []))
        document_type.save(update_fields=['genders', 'cost_types', 'updated_at'])

        for key, (attr, model) in CONDITION_RELATIONS.items():
            ids = {str(value) for value in conditions.get(key) or []}
            entries = list(model.objects.for_company(company).filter(id__in=ids))
            missing = ids - {str(entry.id) for entry in entries}
            if missing:
                raise ValidationError(f'Unknown {model._meta.verbose_name} in conditions', {key: sorted(missing)})
            getattr(document_type, attr).set(entries)

    @staticmethod
    def _normalize(data: Dict[str, Any]):
        if data.get('applies_to') == DocumentType.APPLIES_TO_COMPANY:
            data['is_multi_resource'] = False
            data['is_conditional'] = False

    @classmethod
    def create_document_type(cls, company, data: Dict[str, Any],
                             conditions: Optional[Dict[str, Any]] = None) -> DocumentType:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError('Document type name is required')
        if data.get('applies_to') not in dict(DocumentType.APPLIES_TO_CHOICES):
            raise ValidationError('Unknown applies_to value', {'applies_to': data.get('applies_to')})

        data = dict(data, name=name)
        cls._normalize(data)
        slug = slugify(name)[:160]
        cls._ensure_unique(company, name, slug)

        with persistence_errors('create document type', company_id=str(company.id), input=data):
            with transaction.atomic():
                document_type = DocumentType(company=company, slug=slug)
                for field in TYPE_FIELDS:
                    if field in data:
                        setattr(document_type, field, data[field])
                document_type.save()
                cls._replace_conditions(company, document_type, conditions)

        if document_type.is_mandatory:
            cls._recalculate_kind(company, document_type.applies_to)

        logger.info(
            "Document type created",
            extra={'company_id': str(company.id), 'document_type_id': str(document_type.id)}
        )
        return document_type

    @classmethod
    def update_document_type(cls, company, document_type_id, data: Dict[str, Any],
                             conditions: Optional[Dict[str, Any]] = None) -> DocumentType:
        """
        Update a document type. ``conditions`` replaces every condition
        group when given; the applies-to target cannot change once
        documents exist.
        """
        document_type = cls.get_document_type(company, document_type_id)
        previous_kind = document_type.applies_to
        data = dict(data)

        if 'applies_to' in data and data['applies_to'] != document_type.applies_to:
            if document_type.documents.exists():
                raise ConflictError(
                    'Document type has documents; its target cannot change',
                    {'document_type_id': str(document_type.id)}
                )

        if data.get('name'):
            data['name'] = data['name'].strip()
            slug = slugify(data['name'])[:160]
            cls._ensure_unique(company, data['name'], slug, exclude_id=document_type.id)
            document_type.slug = slug

        merged_applies_to = data.get('applies_to', document_type.applies_to)
        if merged_applies_to == DocumentType.APPLIES_TO_COMPANY:
            data['applies_to'] = merged_applies_to
            cls._normalize(data)

        with persistence_errors('update document type', document_type_id=str(document_type.id), input=data):
            with transaction.atomic():
                for field in TYPE_FIELDS:
                    if field in data:
                        setattr(document_type, field, data[field])
                document_type.save()
                if conditions is not None or not document_type.is_conditional:
                    cls._replace_conditions(company, document_type, conditions)

        for kind in {previous_kind, document_type.applies_to}:
            cls._recalculate_kind(company, kind)
        return document_type

    @classmethod
    def delete_document_type(cls, company, document_type_id):
        document_type = cls.get_document_type(company, document_type_id)
        if Document.objects_with_deleted.filter(document_type=document_type).exists():
            raise ConflictError(
                'Document type has documents and cannot be deleted',
                {'document_type_id': str(document_type.id)}
            )
        try:
            document_type.hard_delete()
        except ProtectedError:
            raise ConflictError('Document type is in use and cannot be deleted')
        cls._recalculate_kind(company, document_type.applies_to)

    @staticmethod
    def _recalculate_kind(company, kind: str):
        """Mandatory rules changed: refresh the status of every subject of the kind."""
        if kind == DocumentType.APPLIES_TO_EMPLOYEE:
            subjects = Employee.objects.for_company(company)
        elif kind == DocumentType.APPLIES_TO_EQUIPMENT:
            subjects = Vehicle.objects.for_company(company)
        else:
            return
        for subject in subjects:
            DocumentService.recalculate_status(company, subject)

    @staticmethod
    def condition_options(company) -> Dict[str, Any]:
        """Values a document type condition can reference."""
        def entries(model):
            return [
                {'id': str(entry.id), 'name': entry.name}
                for entry in model.objects.for_company(company).filter(is_active=True).order_by('name')
            ]

        options = {key: entries(model) for key, (_, model) in CONDITION_RELATIONS.items()}
        options['genders'] = [{'id': value, 'name': label} for value, label in GENDER_CHOICES]
        options['cost_types'] = [{'id': value, 'name': label} for value, label in COST_TYPE_CHOICES]
        return options
