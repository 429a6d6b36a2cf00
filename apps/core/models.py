"""
Core models for Gestio.

Provides BaseModel with UUID primary keys, timestamps and soft delete, and
CompanyScopedModel for records that live inside a company (tenant).
"""
import uuid
from django.db import models
from django.utils import timezone


class BaseModelManager(models.Manager):
    """Manager that excludes soft-deleted objects by default."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class BaseModelQuerySet(models.QuerySet):
    """QuerySet with soft delete support and company scoping."""

    def delete(self):
        """Soft delete all objects in queryset."""
        return self.update(deleted_at=timezone.now())

    def hard_delete(self):
        """Permanently delete all objects in queryset."""
        return super().delete()

    def with_deleted(self):
        """Include soft-deleted objects."""
        return self.model.objects_with_deleted.all()

    def for_company(self, company):
        """Restrict the queryset to one company."""
        return self.filter(company=company)


class BaseModel(models.Model):
    """
    Abstract base model with UUID primary key, soft delete, and timestamps.

    Every model in the project inherits from this base so identifiers and
    timestamps behave the same everywhere.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier"
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when the record was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when the record was last updated"
    )

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp when the record was soft deleted"
    )

    # Default manager excludes soft-deleted objects
    objects = BaseModelManager.from_queryset(BaseModelQuerySet)()

    # Manager that includes soft-deleted objects
    objects_with_deleted = models.Manager.from_queryset(BaseModelQuerySet)()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def delete(self, using=None, keep_parents=False):
        """Soft delete the object."""
        self.deleted_at = timezone.now()
        self.save(using=using)

    def hard_delete(self, using=None, keep_parents=False):
        """Permanently delete the object."""
        return super().delete(using=using, keep_parents=keep_parents)

    def restore(self):
        """Restore a soft-deleted object."""
        self.deleted_at = None
        self.save()

    @property
    def is_deleted(self):
        """Check if the object is soft deleted."""
        return self.deleted_at is not None


class CompanyScopedModel(BaseModel):
    """
    Abstract base for business records owned by a company.

    Every query against these models must be filtered by the resolved
    active company; use ``Model.objects.for_company(company)``.
    """
    company = models.ForeignKey(
        'tenants.Company',
        on_delete=models.CASCADE,
        related_name='+',
        db_index=True,
        help_text="Company that owns this record"
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']
