"""
Vehicle services.

Contractor allocations are replaced as a whole on every update; the
vehicle row and its allocations change in the same transaction.
"""
import logging
from typing import Any, Dict, Iterable, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.catalog import CatalogService
from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.persistence import persistence_errors
from apps.documents.services import DocumentService
from apps.equipment.models import (
    Vehicle, Contractor, ContractorAllocation, VehicleBrand, VehicleType, EquipmentOwner,
    Sector, TypeOperative,
)
from apps.hr.models import CostCenter

logger = logging.getLogger(__name__)

VEHICLE_FIELDS = (
    'intern_number', 'domain', 'chassis', 'engine', 'year', 'kilometers',
    'condition', 'cost_type',
)

VEHICLE_REFERENCES = {
    'brand_id': ('brand', VehicleBrand),
    'type_id': ('type', VehicleType),
    'owner_id': ('owner', EquipmentOwner),
    'cost_center_id': ('cost_center', CostCenter),
    'sector_id': ('sector', Sector),
    'type_operative_id': ('type_operative', TypeOperative),
}

NULLABLE_FIELDS = {'year', 'cost_type'}


class VehicleService:
    """Vehicles and equipment of a company."""

    @staticmethod
    def search_vehicles(company, search: Optional[str] = None, is_active: Optional[bool] = None,
                        type_id=None, brand_id=None):
        queryset = Vehicle.objects.for_company(company).select_related(
            'brand', 'type', 'owner', 'sector'
        ).prefetch_related('allocations__contractor')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if type_id:
            queryset = queryset.filter(type_id=type_id)
        if brand_id:
            queryset = queryset.filter(brand_id=brand_id)
        if search:
            queryset = queryset.filter(
                Q(intern_number__icontains=search)
                | Q(domain__icontains=search)
                | Q(chassis__icontains=search)
                | Q(engine__icontains=search)
            )
        return queryset.order_by('intern_number', 'domain')

    @staticmethod
    def get_vehicle(company, vehicle_id) -> Vehicle:
        try:
            return Vehicle.objects.for_company(company).get(id=vehicle_id)
        except (Vehicle.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Vehicle not found', {'vehicle_id': str(vehicle_id)})

    @staticmethod
    def _apply(vehicle: Vehicle, company, data: Dict[str, Any]):
        for field in VEHICLE_FIELDS:
            if field in data:
                value = data[field]
                if value is None and field not in NULLABLE_FIELDS:
                    value = 0 if field == 'kilometers' else ''
                setattr(vehicle, field, value)

        for key, (attr, model) in VEHICLE_REFERENCES.items():
            if key in data:
                setattr(vehicle, attr, CatalogService.resolve_reference(model, company, data[key], key))

    @staticmethod
    def _contractors(company, contractor_ids: Iterable) -> list:
        ids = {str(contractor_id) for contractor_id in contractor_ids}
        contractors = list(Contractor.objects.for_company(company).filter(id__in=ids))
        missing = ids - {str(c.id) for c in contractors}
        if missing:
            raise ValidationError('Unknown contractor', {'contractor_ids': sorted(missing)})
        return contractors

    @staticmethod
    def _replace_allocations(vehicle: Vehicle, contractors):
        ContractorAllocation.objects_with_deleted.filter(vehicle=vehicle).hard_delete()
        ContractorAllocation.objects.bulk_create([
            ContractorAllocation(vehicle=vehicle, contractor=contractor)
            for contractor in contractors
        ])

    @classmethod
    def create_vehicle(cls, company, data: Dict[str, Any], contractor_ids=None, actor=None) -> Vehicle:
        vehicle = Vehicle(
            company=company,
            created_by=actor if getattr(actor, 'is_authenticated', False) else None,
        )
        cls._apply(vehicle, company, data)
        contractors = cls._contractors(company, contractor_ids or [])

        with persistence_errors('create vehicle', company_id=str(company.id), input=data):
            with transaction.atomic():
                vehicle.save()
                cls._replace_allocations(vehicle, contractors)

        DocumentService.recalculate_status(company, vehicle)

        logger.info(
            "Vehicle created",
            extra={'company_id': str(company.id), 'vehicle_id': str(vehicle.id)}
        )
        return vehicle

    @classmethod
    def update_vehicle(cls, company, vehicle_id, data: Dict[str, Any], contractor_ids=None) -> Vehicle:
        """
        Update a vehicle.

        Args:
            company: Active company
            vehicle_id: Vehicle to update
            data: Validated vehicle fields; catalog references as ``*_id``
            contractor_ids: New full set of contractors, or None to keep
                the current allocations

        Returns:
            Vehicle: The updated vehicle

        Raises:
            NotFoundError: Vehicle not in the company
            ValidationError: Unknown catalog entry or contractor
        """
        vehicle = cls.get_vehicle(company, vehicle_id)
        cls._apply(vehicle, company, data)
        contractors = None if contractor_ids is None else cls._contractors(company, contractor_ids)

        with persistence_errors('update vehicle', vehicle_id=str(vehicle.id), input=data):
            with transaction.atomic():
                vehicle.save()
                if contractors is not None:
                    cls._replace_allocations(vehicle, contractors)

        DocumentService.recalculate_status(company, vehicle)
        return vehicle

    @classmethod
    def deactivate_vehicle(cls, company, vehicle_id, reason: str) -> Vehicle:
        if reason not in dict(Vehicle.TERMINATION_CHOICES):
            raise ValidationError(f"Unknown termination reason '{reason}'", {'reason': reason})

        vehicle = cls.get_vehicle(company, vehicle_id)
        vehicle.is_active = False
        vehicle.termination_date = timezone.localdate()
        vehicle.termination_reason = reason
        vehicle.save(update_fields=['is_active', 'termination_date', 'termination_reason', 'updated_at'])

        logger.info(
            "Vehicle deactivated",
            extra={'company_id': str(company.id), 'vehicle_id': str(vehicle.id), 'reason': reason}
        )
        return vehicle

    @classmethod
    def reactivate_vehicle(cls, company, vehicle_id) -> Vehicle:
        vehicle = cls.get_vehicle(company, vehicle_id)
        vehicle.is_active = True
        vehicle.termination_date = None
        vehicle.termination_reason = ''
        vehicle.save(update_fields=['is_active', 'termination_date', 'termination_reason', 'updated_at'])
        return vehicle

    @staticmethod
    def tab_counts(company) -> Dict[str, int]:
        queryset = Vehicle.objects.for_company(company)
        return {
            'all': queryset.count(),
            'active': queryset.filter(is_active=True).count(),
            'inactive': queryset.filter(is_active=False).count(),
        }
