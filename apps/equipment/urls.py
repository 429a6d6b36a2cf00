"""
Equipment API URLs: vehicles and the fleet catalogs.
"""
from django.urls import path
from apps.core.views import catalog_urlpatterns
from apps.equipment import views
from apps.equipment.models import Contractor, VehicleBrand, VehicleType, EquipmentOwner, Sector, TypeOperative
from apps.equipment.serializers import (
    ContractorSerializer, VehicleBrandSerializer, VehicleTypeSerializer, EquipmentOwnerSerializer,
    SectorSerializer, TypeOperativeSerializer,
)

app_name = 'equipment'

FLEET_CATALOGS = {
    'vehicle-brands': (VehicleBrand, VehicleBrandSerializer, 'company.vehicle-brands'),
    'vehicle-types': (VehicleType, VehicleTypeSerializer, 'company.vehicle-types'),
    'equipment-owners': (EquipmentOwner, EquipmentOwnerSerializer, 'company.equipment-owners'),
    'sectors': (Sector, SectorSerializer, 'company.sectors'),
    'type-operatives': (TypeOperative, TypeOperativeSerializer, 'company.type-operatives'),
    'contractors': (Contractor, ContractorSerializer, 'company.contractors'),
}

urlpatterns = [
    path('equipment', views.VehicleListView.as_view(), name='vehicle-list'),
    path('equipment/counts', views.VehicleCountsView.as_view(), name='vehicle-counts'),
    path('equipment/<uuid:vehicle_id>', views.VehicleDetailView.as_view(), name='vehicle-detail'),
    path('equipment/<uuid:vehicle_id>/reactivate', views.VehicleReactivateView.as_view(), name='vehicle-reactivate'),
] + catalog_urlpatterns('fleet', FLEET_CATALOGS)
