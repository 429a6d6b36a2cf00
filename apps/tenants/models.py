"""
Company (tenant) models.

A company is the isolation boundary: every business record carries a
company foreign key and every query is filtered by the active company
resolved for the request.
"""
from django.conf import settings
from django.db import models
from apps.core.models import BaseModel, BaseModelManager, BaseModelQuerySet


class CompanyQuerySet(BaseModelQuerySet):

    def active(self):
        """Return only active companies."""
        return self.filter(is_active=True)

    def accessible_by(self, user):
        """Companies where the user holds an active membership."""
        return self.filter(
            members__user=user,
            members__is_active=True,
        ).distinct()


class Company(BaseModel):
    """
    Company model representing an isolated business account.

    Users access a company through a Member row (apps.rbac). A company
    keeps its own roles, employees, equipment, clients and documents.
    """

    name = models.CharField(
        max_length=255,
        help_text="Legal or trade name"
    )
    slug = models.SlugField(
        unique=True,
        max_length=120,
        help_text="URL and storage-path friendly identifier"
    )
    tax_id = models.CharField(
        max_length=20,
        blank=True,
        default='',
        help_text="Tax identifier (CUIT)"
    )
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive companies are not resolvable as active context"
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_companies',
        help_text="User who created the company"
    )

    objects = BaseModelManager.from_queryset(CompanyQuerySet)()

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name_plural = 'companies'

    def __str__(self):
        return self.name


class UserPreference(BaseModel):
    """
    Per-user preferences; currently the active company.

    Exactly one row per user, written with update_or_create.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='preference',
    )
    active_company = models.ForeignKey(
        Company,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        help_text="Company the user last selected"
    )

    class Meta:
        db_table = 'user_preferences'

    def __str__(self):
        return f"Preferences for {self.user_id}"
