"""
Company API views.

Company endpoints only need an authenticated user: they are how a user
without an active company gets one.
"""
import logging
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework import status
from drf_spectacular.utils import extend_schema

from apps.core.exceptions import NoActiveTenantError, NotFoundError
from apps.core.views import invalid_request
from apps.tenants.serializers import CompanySerializer, CompanyWriteSerializer, ActiveCompanySerializer
from apps.tenants.services import TenantContextService, CompanyService

logger = logging.getLogger(__name__)


def _accessible_company(user, company_id):
    company = TenantContextService.list_companies(user).filter(id=company_id).first()
    if company is None:
        raise NotFoundError('Company not found', {'company_id': str(company_id)})
    return company


class CompanyListView(APIView):
    """
    GET  /v1/companies - companies the user can access
    POST /v1/companies - create a company owned by the user
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Companies'], summary='List my companies', responses={200: CompanySerializer(many=True)})
    def get(self, request):
        companies = TenantContextService.list_companies(request.user)
        return Response(CompanySerializer(companies, many=True).data)

    @extend_schema(tags=['Companies'], summary='Create company', request=CompanyWriteSerializer,
                   responses={201: CompanySerializer})
    def post(self, request):
        serializer = CompanyWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        company = CompanyService.create_company(request.user, serializer.validated_data)
        return Response(CompanySerializer(company).data, status=status.HTTP_201_CREATED)


class CompanyDetailView(APIView):
    """
    GET    /v1/companies/{id}
    PUT    /v1/companies/{id} - owners only
    DELETE /v1/companies/{id} - deactivate, owners only
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Companies'], summary='Get company', responses={200: CompanySerializer})
    def get(self, request, company_id):
        company = _accessible_company(request.user, company_id)
        return Response(CompanySerializer(company).data)

    @extend_schema(tags=['Companies'], summary='Update company', request=CompanyWriteSerializer,
                   responses={200: CompanySerializer})
    def put(self, request, company_id):
        company = _accessible_company(request.user, company_id)
        serializer = CompanyWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        company = CompanyService.update_company(request.user, company, serializer.validated_data)
        return Response(CompanySerializer(company).data)

    patch = put

    @extend_schema(tags=['Companies'], summary='Deactivate company', responses={200: CompanySerializer})
    def delete(self, request, company_id):
        company = _accessible_company(request.user, company_id)
        company = CompanyService.deactivate_company(request.user, company)
        return Response(CompanySerializer(company).data)


class ActiveCompanyView(APIView):
    """
    GET /v1/companies/active - the resolved active company
    PUT /v1/companies/active - switch the active company
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=['Companies'], summary='Get active company', responses={200: CompanySerializer})
    def get(self, request):
        company = getattr(request, 'tenant', None)
        if company is None:
            raise NoActiveTenantError()
        return Response(CompanySerializer(company).data)

    @extend_schema(tags=['Companies'], summary='Switch active company', request=ActiveCompanySerializer,
                   responses={200: CompanySerializer})
    def put(self, request):
        serializer = ActiveCompanySerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        company = TenantContextService.set_active_company(
            request.user, serializer.validated_data['company_id']
        )
        logger.info(
            "Active company switched",
            extra={'user_id': str(request.user.id), 'company_id': str(company.id)}
        )
        return Response(CompanySerializer(company).data)
