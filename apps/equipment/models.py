"""
Equipment models: fleet catalogs, vehicles and their contractor allocations.
"""
from django.conf import settings
from django.db import models
from apps.core.models import BaseModel, CompanyScopedModel, BaseModelManager, BaseModelQuerySet
from apps.hr.constants import COST_TYPE_CHOICES, ComplianceStatus
from apps.hr.models import CatalogEntry


class VehicleBrand(CatalogEntry):

    class Meta:
        db_table = 'vehicle_brands'
        ordering = ['name']
        verbose_name = 'vehicle brand'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_vehicle_brand_name'),
        ]


class VehicleType(CatalogEntry):

    class Meta:
        db_table = 'vehicle_types'
        ordering = ['name']
        verbose_name = 'vehicle type'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_vehicle_type_name'),
        ]


class EquipmentOwner(CatalogEntry):
    tax_id = models.CharField(max_length=20, blank=True, default='')

    class Meta:
        db_table = 'equipment_owners'
        ordering = ['name']
        verbose_name = 'equipment owner'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_equipment_owner_name'),
        ]


class Sector(CatalogEntry):

    class Meta:
        db_table = 'sectors'
        ordering = ['name']
        verbose_name = 'sector'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_sector_name'),
        ]


class TypeOperative(CatalogEntry):

    class Meta:
        db_table = 'type_operatives'
        ordering = ['name']
        verbose_name = 'type operative'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_type_operative_name'),
        ]


class Contractor(CatalogEntry):
    """A company the fleet works for; vehicles are allocated to contractors."""

    SEARCH_FIELDS = ('name', 'tax_id', 'email')

    tax_id = models.CharField(max_length=20, blank=True, default='', db_index=True)
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')

    class Meta:
        db_table = 'contractors'
        ordering = ['name']
        verbose_name = 'contractor'
        constraints = [
            models.UniqueConstraint(fields=['company', 'name'], name='unique_contractor_name'),
        ]


class VehicleQuerySet(BaseModelQuerySet):

    def active(self):
        return self.filter(is_active=True)


class Vehicle(CompanyScopedModel):
    """
    A vehicle or other piece of equipment.

    ``status`` is the document compliance status; ``condition`` is the
    operational state reported by the company.
    """

    CONDITION_OPERATIVE = 'OPERATIVE'
    CONDITION_NOT_OPERATIVE = 'NOT_OPERATIVE'
    CONDITION_IN_REPAIR = 'IN_REPAIR'
    CONDITION_NOT_OPERATIVE_DEFINITIVE = 'NOT_OPERATIVE_DEFINITIVE'

    CONDITION_CHOICES = [
        (CONDITION_OPERATIVE, 'Operative'),
        (CONDITION_NOT_OPERATIVE, 'Not operative'),
        (CONDITION_IN_REPAIR, 'In repair'),
        (CONDITION_NOT_OPERATIVE_DEFINITIVE, 'Definitively not operative'),
    ]

    TERMINATION_SALE = 'SALE'
    TERMINATION_TOTAL_LOSS = 'TOTAL_LOSS'
    TERMINATION_RETURN = 'RETURN'
    TERMINATION_OTHER = 'OTHER'

    TERMINATION_CHOICES = [
        (TERMINATION_SALE, 'Sale'),
        (TERMINATION_TOTAL_LOSS, 'Total loss'),
        (TERMINATION_RETURN, 'Return'),
        (TERMINATION_OTHER, 'Other'),
    ]

    intern_number = models.CharField(max_length=30, blank=True, default='', db_index=True)
    domain = models.CharField(max_length=20, blank=True, default='', db_index=True)
    chassis = models.CharField(max_length=50, blank=True, default='')
    engine = models.CharField(max_length=50, blank=True, default='')
    year = models.PositiveIntegerField(null=True, blank=True)
    kilometers = models.PositiveIntegerField(default=0)

    condition = models.CharField(
        max_length=30, choices=CONDITION_CHOICES, default=CONDITION_OPERATIVE
    )
    status = models.CharField(
        max_length=30,
        choices=ComplianceStatus.CHOICES,
        default=ComplianceStatus.INCOMPLETE,
        db_index=True,
    )
    cost_type = models.CharField(max_length=20, choices=COST_TYPE_CHOICES, null=True, blank=True)

    brand = models.ForeignKey(
        VehicleBrand, on_delete=models.PROTECT, null=True, blank=True, related_name='vehicles'
    )
    type = models.ForeignKey(
        VehicleType, on_delete=models.PROTECT, null=True, blank=True, related_name='vehicles'
    )
    owner = models.ForeignKey(
        EquipmentOwner, on_delete=models.PROTECT, null=True, blank=True, related_name='vehicles'
    )
    cost_center = models.ForeignKey(
        'hr.CostCenter', on_delete=models.PROTECT, null=True, blank=True, related_name='vehicles'
    )
    sector = models.ForeignKey(
        Sector, on_delete=models.PROTECT, null=True, blank=True, related_name='vehicles'
    )
    type_operative = models.ForeignKey(
        TypeOperative, on_delete=models.PROTECT, null=True, blank=True, related_name='vehicles'
    )

    is_active = models.BooleanField(default=True, db_index=True)
    termination_date = models.DateField(null=True, blank=True)
    termination_reason = models.CharField(
        max_length=20, choices=TERMINATION_CHOICES, blank=True, default=''
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    objects = BaseModelManager.from_queryset(VehicleQuerySet)()

    class Meta:
        db_table = 'vehicles'
        ordering = ['intern_number', 'domain']

    def __str__(self):
        return self.intern_number or self.domain or str(self.id)


class ContractorAllocation(BaseModel):
    """A vehicle assigned to work for a contractor."""

    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name='allocations')
    contractor = models.ForeignKey(
        Contractor, on_delete=models.CASCADE, related_name='allocations'
    )

    class Meta:
        db_table = 'contractor_allocations'
        constraints = [
            models.UniqueConstraint(fields=['vehicle', 'contractor'], name='unique_contractor_allocation'),
        ]

    def __str__(self):
        return f"{self.vehicle} -> {self.contractor}"
