"""
Services for company context and lifecycle.
"""
from .tenant_context_service import TenantContextService
from .company_service import CompanyService

__all__ = [
    'TenantContextService',
    'CompanyService',
]
