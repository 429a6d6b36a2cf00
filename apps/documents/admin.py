from django.contrib import admin
from .models import Document, DocumentType, DocumentVersion


@admin.register(DocumentType)
class DocumentTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'applies_to', 'is_mandatory', 'has_expiration', 'is_monthly', 'is_active']
    list_filter = ['applies_to', 'is_mandatory', 'is_conditional', 'is_active']
    search_fields = ['name', 'slug']


class DocumentVersionInline(admin.TabularInline):
    model = DocumentVersion
    extra = 0
    fields = ['number', 'action', 'state', 'file_name', 'expiration_date', 'reason', 'created_at']
    readonly_fields = fields


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['document_type', 'company', 'employee', 'vehicle', 'state', 'period', 'expiration_date']
    list_filter = ['state']
    search_fields = ['file_name', 'document_type__name']
    inlines = [DocumentVersionInline]
