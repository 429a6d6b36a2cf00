"""
HR models: company catalogs and employees.

Catalog entries are unique by name inside a company. Collective
agreements belong to a union and job categories to an agreement; an
employee's union and agreement are derived from their job category.
"""
from django.conf import settings
from django.db import models
from apps.core.models import CompanyScopedModel, BaseModelManager, BaseModelQuerySet
from apps.hr.constants import GENDER_CHOICES, COST_TYPE_CHOICES, ComplianceStatus


class CatalogEntry(CompanyScopedModel):
    """Abstract base for the small lookup tables a company configures."""

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        abstract = True
        ordering = ['name']

    def __str__(self):
        return self.name


class CostCenter(CatalogEntry):

    class Meta:
        db_table = 'cost_centers'
        ordering = ['name']
        verbose_name = 'cost center'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_cost_center_name'),
        ]


class ContractType(CatalogEntry):

    class Meta:
        db_table = 'contract_types'
        ordering = ['name']
        verbose_name = 'contract type'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_contract_type_name'),
        ]


class JobPosition(CatalogEntry):

    class Meta:
        db_table = 'job_positions'
        ordering = ['name']
        verbose_name = 'job position'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_job_position_name'),
        ]


class Union(CatalogEntry):

    class Meta:
        db_table = 'unions'
        ordering = ['name']
        verbose_name = 'union'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_union_name'),
        ]


class CollectiveAgreement(CatalogEntry):
    union = models.ForeignKey(
        Union,
        on_delete=models.PROTECT,
        related_name='agreements',
    )

    class Meta:
        db_table = 'collective_agreements'
        ordering = ['name']
        verbose_name = 'collective agreement'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_collective_agreement_name'),
        ]


class JobCategory(CatalogEntry):
    agreement = models.ForeignKey(
        CollectiveAgreement,
        on_delete=models.PROTECT,
        related_name='categories',
    )

    class Meta:
        db_table = 'job_categories'
        ordering = ['name']
        verbose_name = 'job category'
        verbose_name_plural = 'job categories'
        constraints = [
            models.UniqueConstraint(
                fields=['company', 'agreement', 'name'], name='unique_job_category_name'
            ),
        ]


class EmployeeQuerySet(BaseModelQuerySet):

    def active(self):
        return self.filter(is_active=True)


class Employee(CompanyScopedModel):
    """
    A person employed by the company.

    ``status`` is the document compliance status, recalculated whenever
    one of the employee's documents changes.
    """

    employee_number = models.CharField(max_length=20, db_index=True)
    document_number = models.CharField(max_length=20, blank=True, default='')
    tax_id = models.CharField(max_length=20, blank=True, default='')

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    birth_date = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=20, choices=GENDER_CHOICES, null=True, blank=True)
    cost_type = models.CharField(max_length=20, choices=COST_TYPE_CHOICES, null=True, blank=True)

    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')

    hire_date = models.DateField(null=True, blank=True)
    termination_date = models.DateField(null=True, blank=True)
    termination_reason = models.TextField(blank=True, default='')

    job_position = models.ForeignKey(
        JobPosition, on_delete=models.PROTECT, null=True, blank=True, related_name='employees'
    )
    contract_type = models.ForeignKey(
        ContractType, on_delete=models.PROTECT, null=True, blank=True, related_name='employees'
    )
    job_category = models.ForeignKey(
        JobCategory, on_delete=models.PROTECT, null=True, blank=True, related_name='employees'
    )
    cost_center = models.ForeignKey(
        CostCenter, on_delete=models.PROTECT, null=True, blank=True, related_name='employees'
    )

    status = models.CharField(
        max_length=30,
        choices=ComplianceStatus.CHOICES,
        default=ComplianceStatus.INCOMPLETE,
        db_index=True,
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    objects = BaseModelManager.from_queryset(EmployeeQuerySet)()

    class Meta:
        db_table = 'employees'
        ordering = ['last_name', 'first_name']
        constraints = [
            models.UniqueConstraint(
                fields=['company', 'employee_number'], name='unique_employee_number'
            ),
        ]

    def __str__(self):
        return f"{self.employee_number} - {self.full_name}"

    @property
    def full_name(self):
        return f"{self.last_name}, {self.first_name}"

    @property
    def collective_agreement(self):
        if self.job_category_id is None:
            return None
        return self.job_category.agreement

    @property
    def union(self):
        agreement = self.collective_agreement
        return agreement.union if agreement else None
