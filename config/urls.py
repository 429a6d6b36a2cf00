"""
URL configuration for Gestio.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # API Documentation
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('schema/swagger/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # API v1
    path('v1/', include('apps.core.urls')),

    # Authentication endpoints
    path('v1/auth/', include('apps.rbac.urls_auth')),  # Login, current user, invitation acceptance

    # Companies and the active company
    path('v1/', include('apps.tenants.urls')),

    # RBAC endpoints
    path('v1/', include('apps.rbac.urls')),  # Roles, members, overrides, invitations, audit logs

    # Business modules
    path('v1/', include('apps.hr.urls')),
    path('v1/', include('apps.equipment.urls')),
    path('v1/', include('apps.commercial.urls')),
    path('v1/', include('apps.documents.urls')),
]
