"""
Document models.

A DocumentType describes a category of compliance document (who it
applies to, whether it is mandatory, expires, recurs monthly and under
which conditions it applies). A Document is the record of one type for
one subject (an employee, a vehicle, or nobody for company documents and
documents shared by every employee or vehicle), optionally per monthly
period. Each file uploaded for a document is kept as a DocumentVersion.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone
from apps.core.models import BaseModel, CompanyScopedModel, BaseModelManager, BaseModelQuerySet
from apps.equipment.models import Vehicle
from apps.hr.models import Employee


class DocumentType(CompanyScopedModel):

    APPLIES_TO_EMPLOYEE = 'EMPLOYEE'
    APPLIES_TO_EQUIPMENT = 'EQUIPMENT'
    APPLIES_TO_COMPANY = 'COMPANY'

    APPLIES_TO_CHOICES = [
        (APPLIES_TO_EMPLOYEE, 'Employee'),
        (APPLIES_TO_EQUIPMENT, 'Equipment'),
        (APPLIES_TO_COMPANY, 'Company'),
    ]

    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=160)
    description = models.TextField(blank=True, default='')
    applies_to = models.CharField(max_length=20, choices=APPLIES_TO_CHOICES, db_index=True)

    is_mandatory = models.BooleanField(default=False)
    has_expiration = models.BooleanField(default=False)
    is_monthly = models.BooleanField(default=False)
    is_multi_resource = models.BooleanField(
        default=False,
        help_text="One document shared by every employee or vehicle"
    )
    is_private = models.BooleanField(default=False)
    is_termination = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)

    is_conditional = models.BooleanField(default=False)
    genders = models.JSONField(default=list, blank=True)
    cost_types = models.JSONField(default=list, blank=True)
    condition_job_positions = models.ManyToManyField(
        'hr.JobPosition', blank=True, related_name='+'
    )
    condition_contract_types = models.ManyToManyField(
        'hr.ContractType', blank=True, related_name='+'
    )
    condition_job_categories = models.ManyToManyField(
        'hr.JobCategory', blank=True, related_name='+'
    )
    condition_unions = models.ManyToManyField(
        'hr.Union', blank=True, related_name='+'
    )
    condition_collective_agreements = models.ManyToManyField(
        'hr.CollectiveAgreement', blank=True, related_name='+'
    )
    condition_vehicle_brands = models.ManyToManyField(
        'equipment.VehicleBrand', blank=True, related_name='+'
    )
    condition_vehicle_types = models.ManyToManyField(
        'equipment.VehicleType', blank=True, related_name='+'
    )

    class Meta:
        db_table = 'document_types'
        ordering = ['-is_mandatory', 'name']
        constraints = [
            models.UniqueConstraint(fields=['company', 'slug'], name='unique_document_type_slug'),
        ]

    def __str__(self):
        return self.name


class DocumentQuerySet(BaseModelQuerySet):

    def for_subject(self, subject):
        """Documents owned by an Employee, a Vehicle, or (None) the company."""
        if isinstance(subject, Employee):
            return self.filter(employee=subject)
        if isinstance(subject, Vehicle):
            return self.filter(vehicle=subject)
        return self.filter(employee__isnull=True, vehicle__isnull=True)

    def approved(self):
        return self.filter(state=Document.STATE_APPROVED)


class Document(CompanyScopedModel):
    """
    A compliance document of one type for one subject.

    ``file_key`` and the other file fields always mirror the newest
    version.
    """

    STATE_PENDING = 'PENDING'
    STATE_SUBMITTED = 'SUBMITTED'
    STATE_APPROVED = 'APPROVED'
    STATE_REJECTED = 'REJECTED'
    STATE_EXPIRED = 'EXPIRED'

    STATE_CHOICES = [
        (STATE_PENDING, 'Pending'),
        (STATE_SUBMITTED, 'Submitted'),
        (STATE_APPROVED, 'Approved'),
        (STATE_REJECTED, 'Rejected'),
        (STATE_EXPIRED, 'Expired'),
    ]

    document_type = models.ForeignKey(
        DocumentType, on_delete=models.PROTECT, related_name='documents'
    )
    employee = models.ForeignKey(
        'hr.Employee', on_delete=models.CASCADE, null=True, blank=True, related_name='documents'
    )
    vehicle = models.ForeignKey(
        'equipment.Vehicle', on_delete=models.CASCADE, null=True, blank=True, related_name='documents'
    )

    state = models.CharField(
        max_length=20, choices=STATE_CHOICES, default=STATE_PENDING, db_index=True
    )
    period = models.CharField(max_length=7, blank=True, default='', help_text="YYYY-MM for monthly types")
    expiration_date = models.DateField(null=True, blank=True, db_index=True)

    file_key = models.CharField(max_length=500, blank=True, default='')
    file_name = models.CharField(max_length=255, blank=True, default='')
    file_size = models.PositiveIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True, default='')

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_notes = models.TextField(blank=True, default='')

    objects = BaseModelManager.from_queryset(DocumentQuerySet)()

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['document_type', 'employee', 'period']),
            models.Index(fields=['document_type', 'vehicle', 'period']),
        ]

    def __str__(self):
        return f"{self.document_type} ({self.state})"

    @property
    def subject(self):
        return self.employee or self.vehicle

    def effective_state(self, today=None):
        """State with a passed expiration date applied, before the nightly expiry job runs."""
        today = today or timezone.localdate()
        if (self.state == self.STATE_APPROVED and self.document_type.has_expiration
                and self.expiration_date and self.expiration_date < today):
            return self.STATE_EXPIRED
        return self.state


class DocumentVersion(BaseModel):
    """
    History entry of a document.

    UPLOADED, RENEWED and REPLACED entries each hold one stored file and
    are the document's versions; DELETED entries record a version removed
    by a revert and hold no file.
    """

    ACTION_UPLOADED = 'UPLOADED'
    ACTION_RENEWED = 'RENEWED'
    ACTION_REPLACED = 'REPLACED'
    ACTION_DELETED = 'DELETED'

    ACTION_CHOICES = [
        (ACTION_UPLOADED, 'Uploaded'),
        (ACTION_RENEWED, 'Renewed'),
        (ACTION_REPLACED, 'Replaced'),
        (ACTION_DELETED, 'Deleted'),
    ]

    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name='history')
    number = models.PositiveIntegerField()
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    state = models.CharField(max_length=20, choices=Document.STATE_CHOICES)

    file_key = models.CharField(max_length=500, blank=True, default='')
    file_name = models.CharField(max_length=255, blank=True, default='')
    file_size = models.PositiveIntegerField(null=True, blank=True)
    mime_type = models.CharField(max_length=100, blank=True, default='')
    expiration_date = models.DateField(null=True, blank=True)
    period = models.CharField(max_length=7, blank=True, default='')

    reason = models.CharField(max_length=255, blank=True, default='')
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )

    class Meta:
        db_table = 'document_versions'
        ordering = ['-number']
        constraints = [
            models.UniqueConstraint(fields=['document', 'number'], name='unique_document_version_number'),
        ]

    def __str__(self):
        return f"{self.document_id} #{self.number} {self.action}"

    @property
    def holds_file(self):
        return self.action != self.ACTION_DELETED
