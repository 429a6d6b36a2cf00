from django.contrib import admin
from .models import (
    Contractor, Vehicle, ContractorAllocation, VehicleBrand, VehicleType, EquipmentOwner, Sector,
    TypeOperative,
)


class ContractorAllocationInline(admin.TabularInline):
    model = ContractorAllocation
    extra = 0


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['intern_number', 'domain', 'company', 'brand', 'type', 'status', 'is_active']
    list_filter = ['status', 'condition', 'is_active']
    search_fields = ['intern_number', 'domain', 'chassis']
    inlines = [ContractorAllocationInline]


@admin.register(VehicleBrand, VehicleType, EquipmentOwner, Sector, TypeOperative, Contractor)
class FleetCatalogAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name']
