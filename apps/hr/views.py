"""
Employee API views.
"""
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.permissions import requires_permission
from apps.core.views import CompanyAPIView, invalid_request
from apps.hr.serializers import (
    EmployeeSerializer, EmployeeWriteSerializer, TerminateEmployeeSerializer,
)
from apps.hr.services import EmployeeService

EMPLOYEES_MODULE = 'employees'


class EmployeeListView(CompanyAPIView):
    """
    GET  /v1/employees - search by name, number, document or tax id
    POST /v1/employees
    """
    permission_module = EMPLOYEES_MODULE

    @extend_schema(
        tags=['Employees'],
        parameters=[
            OpenApiParameter('search', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('is_active', OpenApiTypes.BOOL, OpenApiParameter.QUERY),
            OpenApiParameter('status', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: EmployeeSerializer(many=True)}
    )
    def get(self, request):
        is_active = request.query_params.get('is_active')
        employees = EmployeeService.search_employees(
            request.tenant,
            search=request.query_params.get('search'),
            is_active=None if is_active is None else is_active.lower() == 'true',
            status=request.query_params.get('status'),
        )
        return self.paginate(request, employees, EmployeeSerializer)

    @extend_schema(tags=['Employees'], request=EmployeeWriteSerializer, responses={201: EmployeeSerializer})
    def post(self, request):
        serializer = EmployeeWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        employee = EmployeeService.create_employee(
            request.tenant, serializer.validated_data, actor=request.user
        )
        return Response(EmployeeSerializer(employee).data, status=status.HTTP_201_CREATED)


class EmployeeDetailView(CompanyAPIView):
    """GET/PUT /v1/employees/{id}"""
    permission_module = EMPLOYEES_MODULE

    @extend_schema(tags=['Employees'], responses={200: EmployeeSerializer})
    def get(self, request, employee_id):
        employee = EmployeeService.get_employee(request.tenant, employee_id)
        return Response(EmployeeSerializer(employee).data)

    @extend_schema(tags=['Employees'], request=EmployeeWriteSerializer, responses={200: EmployeeSerializer})
    def put(self, request, employee_id):
        serializer = EmployeeWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        employee = EmployeeService.update_employee(request.tenant, employee_id, serializer.validated_data)
        return Response(EmployeeSerializer(employee).data)

    patch = put


class EmployeeTerminateView(CompanyAPIView):
    """POST /v1/employees/{id}/terminate"""

    @extend_schema(tags=['Employees'], request=TerminateEmployeeSerializer, responses={200: EmployeeSerializer})
    @requires_permission(EMPLOYEES_MODULE, 'update')
    def post(self, request, employee_id):
        serializer = TerminateEmployeeSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        employee = EmployeeService.terminate_employee(
            request.tenant,
            employee_id,
            reason=serializer.validated_data.get('reason'),
            termination_date=serializer.validated_data.get('termination_date'),
        )
        return Response(EmployeeSerializer(employee).data)


class EmployeeReactivateView(CompanyAPIView):
    """POST /v1/employees/{id}/reactivate"""

    @extend_schema(tags=['Employees'], request=None, responses={200: EmployeeSerializer})
    @requires_permission(EMPLOYEES_MODULE, 'update')
    def post(self, request, employee_id):
        employee = EmployeeService.reactivate_employee(request.tenant, employee_id)
        return Response(EmployeeSerializer(employee).data)
