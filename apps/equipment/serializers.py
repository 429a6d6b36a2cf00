"""
Serializers for vehicles and fleet catalogs.
"""
from rest_framework import serializers

from apps.equipment.models import (
    Contractor, Vehicle, VehicleBrand, VehicleType, EquipmentOwner, Sector, TypeOperative,
)
from apps.hr.constants import COST_TYPE_CHOICES
from apps.hr.serializers import CatalogSerializer, CATALOG_FIELDS


class VehicleBrandSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = VehicleBrand


class VehicleTypeSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = VehicleType


class EquipmentOwnerSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = EquipmentOwner
        fields = CATALOG_FIELDS + ['tax_id']


class SectorSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = Sector


class TypeOperativeSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = TypeOperative


class ContractorSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = Contractor
        fields = CATALOG_FIELDS + ['tax_id', 'email', 'phone']


class VehicleSerializer(serializers.ModelSerializer):
    brand_name = serializers.CharField(source='brand.name', read_only=True, default=None)
    type_name = serializers.CharField(source='type.name', read_only=True, default=None)
    owner_name = serializers.CharField(source='owner.name', read_only=True, default=None)
    contractors = serializers.SerializerMethodField()

    class Meta:
        model = Vehicle
        fields = [
            'id', 'intern_number', 'domain', 'chassis', 'engine', 'year', 'kilometers',
            'condition', 'status', 'cost_type',
            'brand', 'brand_name', 'type', 'type_name', 'owner', 'owner_name',
            'cost_center', 'sector', 'type_operative', 'contractors',
            'is_active', 'termination_date', 'termination_reason',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_contractors(self, obj):
        return [
            {'id': str(allocation.contractor_id), 'name': allocation.contractor.name}
            for allocation in obj.allocations.all()
        ]


class VehicleWriteSerializer(serializers.Serializer):
    intern_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    domain = serializers.CharField(max_length=20, required=False, allow_blank=True)
    chassis = serializers.CharField(max_length=50, required=False, allow_blank=True)
    engine = serializers.CharField(max_length=50, required=False, allow_blank=True)
    year = serializers.IntegerField(min_value=1900, max_value=2100, required=False, allow_null=True)
    kilometers = serializers.IntegerField(min_value=0, required=False)
    condition = serializers.ChoiceField(choices=Vehicle.CONDITION_CHOICES, required=False)
    cost_type = serializers.ChoiceField(choices=COST_TYPE_CHOICES, required=False, allow_null=True)
    brand_id = serializers.UUIDField(required=False, allow_null=True)
    type_id = serializers.UUIDField(required=False, allow_null=True)
    owner_id = serializers.UUIDField(required=False, allow_null=True)
    cost_center_id = serializers.UUIDField(required=False, allow_null=True)
    sector_id = serializers.UUIDField(required=False, allow_null=True)
    type_operative_id = serializers.UUIDField(required=False, allow_null=True)
    contractor_ids = serializers.ListField(child=serializers.UUIDField(), required=False)


class DeactivateVehicleSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=Vehicle.TERMINATION_CHOICES)
