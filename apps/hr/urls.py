"""
HR API URLs: employees and the HR catalogs.
"""
from django.urls import path
from apps.core.views import catalog_urlpatterns
from apps.hr import views
from apps.hr.models import (
    CostCenter, ContractType, JobPosition, Union, CollectiveAgreement, JobCategory,
)
from apps.hr.serializers import (
    CostCenterSerializer, ContractTypeSerializer, JobPositionSerializer,
    UnionSerializer, CollectiveAgreementSerializer, JobCategorySerializer,
)

app_name = 'hr'

HR_CATALOGS = {
    'cost-centers': (CostCenter, CostCenterSerializer, 'company.cost-centers'),
    'contract-types': (ContractType, ContractTypeSerializer, 'company.contract-types'),
    'job-positions': (JobPosition, JobPositionSerializer, 'company.job-positions'),
    'unions': (Union, UnionSerializer, 'company.unions'),
    'collective-agreements': (
        CollectiveAgreement, CollectiveAgreementSerializer, 'company.collective-agreements'
    ),
    'job-categories': (JobCategory, JobCategorySerializer, 'company.job-categories'),
}

urlpatterns = [
    path('employees', views.EmployeeListView.as_view(), name='employee-list'),
    path('employees/<uuid:employee_id>', views.EmployeeDetailView.as_view(), name='employee-detail'),
    path('employees/<uuid:employee_id>/terminate', views.EmployeeTerminateView.as_view(), name='employee-terminate'),
    path('employees/<uuid:employee_id>/reactivate', views.EmployeeReactivateView.as_view(), name='employee-reactivate'),
] + catalog_urlpatterns('hr', HR_CATALOGS)
