from django.contrib import admin
from .models import (
    Employee, CostCenter, ContractType, JobPosition, Union, CollectiveAgreement, JobCategory,
)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['employee_number', 'last_name', 'first_name', 'company', 'status', 'is_active']
    list_filter = ['status', 'is_active', 'gender']
    search_fields = ['employee_number', 'first_name', 'last_name', 'document_number', 'tax_id']


@admin.register(CostCenter, ContractType, JobPosition, Union)
class CatalogAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name']


@admin.register(CollectiveAgreement)
class CollectiveAgreementAdmin(admin.ModelAdmin):
    list_display = ['name', 'union', 'company', 'is_active']
    search_fields = ['name']


@admin.register(JobCategory)
class JobCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'agreement', 'company', 'is_active']
    search_fields = ['name']
