from django.contrib import admin
from .models import Client, Contact, Lead


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'tax_id', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'tax_id']


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'status', 'is_active', 'converted_at']
    list_filter = ['status', 'is_active']
    search_fields = ['name', 'tax_id']


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ['last_name', 'first_name', 'company', 'client', 'lead', 'is_active']
    search_fields = ['first_name', 'last_name', 'email']
