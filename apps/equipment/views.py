"""
Equipment API views.
"""
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import requires_permission
from apps.core.views import CompanyAPIView, invalid_request
from apps.equipment.serializers import (
    VehicleSerializer, VehicleWriteSerializer, DeactivateVehicleSerializer,
)
from apps.equipment.services import VehicleService

EQUIPMENT_MODULE = 'equipment'


def _split_contractors(validated_data):
    data = dict(validated_data)
    return data, data.pop('contractor_ids', None)


class VehicleListView(CompanyAPIView):
    """
    GET  /v1/equipment
    POST /v1/equipment - with optional ``contractor_ids``
    """
    permission_module = EQUIPMENT_MODULE

    @extend_schema(
        tags=['Equipment'],
        parameters=[
            OpenApiParameter('search', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('is_active', OpenApiTypes.BOOL, OpenApiParameter.QUERY),
            OpenApiParameter('type_id', OpenApiTypes.UUID, OpenApiParameter.QUERY),
            OpenApiParameter('brand_id', OpenApiTypes.UUID, OpenApiParameter.QUERY),
            OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: VehicleSerializer(many=True)}
    )
    def get(self, request):
        is_active = request.query_params.get('is_active')
        vehicles = VehicleService.search_vehicles(
            request.tenant,
            search=request.query_params.get('search'),
            is_active=None if is_active is None else is_active.lower() == 'true',
            type_id=request.query_params.get('type_id'),
            brand_id=request.query_params.get('brand_id'),
        )
        return self.paginate(request, vehicles, VehicleSerializer)

    @extend_schema(tags=['Equipment'], request=VehicleWriteSerializer, responses={201: VehicleSerializer})
    def post(self, request):
        serializer = VehicleWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data, contractor_ids = _split_contractors(serializer.validated_data)
        vehicle = VehicleService.create_vehicle(
            request.tenant, data, contractor_ids=contractor_ids, actor=request.user
        )
        return Response(VehicleSerializer(vehicle).data, status=status.HTTP_201_CREATED)


class VehicleDetailView(CompanyAPIView):
    """
    GET    /v1/equipment/{id}
    PUT    /v1/equipment/{id} - ``contractor_ids`` replaces all allocations
    DELETE /v1/equipment/{id} - deactivate with a termination reason
    """
    permission_module = EQUIPMENT_MODULE

    @extend_schema(tags=['Equipment'], responses={200: VehicleSerializer})
    def get(self, request, vehicle_id):
        vehicle = VehicleService.get_vehicle(request.tenant, vehicle_id)
        return Response(VehicleSerializer(vehicle).data)

    @extend_schema(tags=['Equipment'], request=VehicleWriteSerializer, responses={200: VehicleSerializer})
    def put(self, request, vehicle_id):
        serializer = VehicleWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        data, contractor_ids = _split_contractors(serializer.validated_data)
        vehicle = VehicleService.update_vehicle(
            request.tenant, vehicle_id, data, contractor_ids=contractor_ids
        )
        return Response(VehicleSerializer(vehicle).data)

    patch = put

    @extend_schema(tags=['Equipment'], request=DeactivateVehicleSerializer, responses={200: VehicleSerializer})
    def delete(self, request, vehicle_id):
        serializer = DeactivateVehicleSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        vehicle = VehicleService.deactivate_vehicle(
            request.tenant, vehicle_id, serializer.validated_data['reason']
        )
        return Response(VehicleSerializer(vehicle).data)


class VehicleReactivateView(CompanyAPIView):
    """POST /v1/equipment/{id}/reactivate"""

    @extend_schema(tags=['Equipment'], request=None, responses={200: VehicleSerializer})
    @requires_permission(EQUIPMENT_MODULE, 'update')
    def post(self, request, vehicle_id):
        vehicle = VehicleService.reactivate_vehicle(request.tenant, vehicle_id)
        return Response(VehicleSerializer(vehicle).data)


class VehicleCountsView(CompanyAPIView):
    """GET /v1/equipment/counts"""
    permission_module = EQUIPMENT_MODULE

    @extend_schema(tags=['Equipment'], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response(VehicleService.tab_counts(request.tenant))
