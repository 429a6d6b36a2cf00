"""
Django admin configuration for tenants app.
"""
from django.contrib import admin
from .models import Company, UserPreference


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'tax_id', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name', 'slug', 'tax_id']
    readonly_fields = ['created_at', 'updated_at']


admin.site.register(UserPreference)
