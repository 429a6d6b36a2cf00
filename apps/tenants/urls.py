"""
Company API URLs.
"""
from django.urls import path
from apps.tenants.views import CompanyListView, CompanyDetailView, ActiveCompanyView

app_name = 'tenants'

urlpatterns = [
    path('companies', CompanyListView.as_view(), name='company-list'),
    path('companies/active', ActiveCompanyView.as_view(), name='company-active'),
    path('companies/<uuid:company_id>', CompanyDetailView.as_view(), name='company-detail'),
]
