"""
Core API views and shared view base classes.
"""
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.pagination import PageNumberPagination
from django.db import connection
from django.urls import path
from django.core.cache import cache
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
import logging

from apps.core.catalog import CatalogService
from apps.core.exceptions import NoActiveTenantError
from apps.core.permissions import HasModulePermission, MethodPermissionMixin

logger = logging.getLogger(__name__)


class StandardResultsSetPagination(PageNumberPagination):
    """Standard pagination for list endpoints."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def invalid_request(errors, message='Invalid request data'):
    """Build the 400 response used for serializer validation failures."""
    return Response(
        {
            'error': message,
            'code': 'INVALID_INPUT',
            'details': errors,
        },
        status=status.HTTP_400_BAD_REQUEST
    )


class CompanyAPIView(MethodPermissionMixin, APIView):
    """
    Base view for company-scoped endpoints.

    Requires the active company resolved by TenantContextMiddleware and
    enforces the module/action matrix through HasModulePermission.
    """
    permission_classes = [HasModulePermission]
    permission_module = None

    def check_permissions(self, request):
        if not (request.user and request.user.is_authenticated):
            self.permission_denied(request, message='Authentication required')
        if getattr(request, 'tenant', None) is None:
            raise NoActiveTenantError()
        super().check_permissions(request)

    def paginate(self, request, queryset, serializer_class):
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        serializer = serializer_class(page, many=True)
        return paginator.get_paginated_response(serializer.data)


class HealthCheckView(APIView):
    """
    Health check endpoint to verify system dependencies.

    GET /v1/health

    Returns 200 if all dependencies are healthy, 503 otherwise.
    """
    authentication_classes = []
    permission_classes = []

    @extend_schema(
        summary="Health check",
        description="Check the health of the database and cache",
        tags=['System']
    )
    def get(self, request):
        health_status = {
            'status': 'healthy',
            'database': 'unknown',
            'cache': 'unknown',
        }
        errors = []

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            health_status['database'] = 'healthy'
        except Exception as e:
            health_status['database'] = 'unhealthy'
            errors.append(f"Database: {str(e)}")
            logger.error("Database health check failed", exc_info=True)

        try:
            cache.set('health_check', 'ok', timeout=10)
            if cache.get('health_check') == 'ok':
                health_status['cache'] = 'healthy'
            else:
                health_status['cache'] = 'unhealthy'
                errors.append("Cache: read-back mismatch")
        except Exception as e:
            health_status['cache'] = 'unhealthy'
            errors.append(f"Cache: {str(e)}")
            logger.error("Cache health check failed", exc_info=True)

        if errors:
            health_status['status'] = 'unhealthy'
            health_status['errors'] = errors
            return Response(health_status, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        return Response(health_status)


class CatalogListView(CompanyAPIView):
    """
    List and create entries of a company catalog (cost centers, unions, ...).

    Subclasses set ``model``, ``serializer_class`` and ``permission_module``.
    """
    model = None
    serializer_class = None
    search_fields = ('name',)

    @extend_schema(
        parameters=[
            OpenApiParameter('search', OpenApiTypes.STR, OpenApiParameter.QUERY),
            OpenApiParameter('is_active', OpenApiTypes.BOOL, OpenApiParameter.QUERY),
            OpenApiParameter('page', OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        tags=['Catalogs']
    )
    def get(self, request):
        is_active = request.query_params.get('is_active')
        queryset = CatalogService.list_entries(
            self.model,
            request.tenant,
            search=request.query_params.get('search'),
            search_fields=self.search_fields,
            is_active=None if is_active is None else is_active.lower() == 'true',
        )
        return self.paginate(request, queryset, self.serializer_class)

    @extend_schema(tags=['Catalogs'])
    def post(self, request):
        serializer = self.serializer_class(data=request.data, context={'company': request.tenant})
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        entry = CatalogService.create_entry(self.model, request.tenant, serializer.validated_data)
        return Response(self.serializer_class(entry).data, status=status.HTTP_201_CREATED)


class CatalogDetailView(CompanyAPIView):
    """Retrieve, update and delete one catalog entry."""
    model = None
    serializer_class = None

    @extend_schema(tags=['Catalogs'])
    def get(self, request, entry_id):
        entry = CatalogService.get_entry(self.model, request.tenant, entry_id)
        return Response(self.serializer_class(entry).data)

    @extend_schema(tags=['Catalogs'])
    def put(self, request, entry_id):
        entry = CatalogService.get_entry(self.model, request.tenant, entry_id)
        serializer = self.serializer_class(
            entry, data=request.data, partial=True, context={'company': request.tenant}
        )
        if not serializer.is_valid():
            return invalid_request(serializer.errors)

        entry = CatalogService.update_entry(entry, serializer.validated_data)
        return Response(self.serializer_class(entry).data)

    patch = put

    @extend_schema(tags=['Catalogs'])
    def delete(self, request, entry_id):
        entry = CatalogService.get_entry(self.model, request.tenant, entry_id)
        CatalogService.delete_entry(entry)
        return Response(status=status.HTTP_204_NO_CONTENT)


def catalog_urlpatterns(prefix, catalogs):
    """
    URL patterns for a group of catalogs.

    ``catalogs`` maps the URL segment to ``(model, serializer_class,
    permission_module)``; each gets ``<prefix>/<segment>`` and
    ``<prefix>/<segment>/<uuid:entry_id>``.
    """
    patterns = []
    for segment, (model, serializer_class, module) in catalogs.items():
        attrs = {
            'model': model,
            'serializer_class': serializer_class,
            'permission_module': module,
            'search_fields': getattr(model, 'SEARCH_FIELDS', CatalogListView.search_fields),
        }
        class_prefix = model.__name__
        list_view = type(f'{class_prefix}ListView', (CatalogListView,), dict(attrs))
        detail_view = type(f'{class_prefix}DetailView', (CatalogDetailView,), dict(attrs))
        patterns += [
            path(f'{prefix}/{segment}', list_view.as_view(), name=f'{segment}-list'),
            path(f'{prefix}/{segment}/<uuid:entry_id>', detail_view.as_view(), name=f'{segment}-detail'),
        ]
    return patterns
