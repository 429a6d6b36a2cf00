"""
RBAC (Role-Based Access Control) application.

Provides multi-tenant access control with:
- Global user identity system
- Per-tenant role assignments
- Permission overrides with deny-overrides-allow pattern
- Four-eyes approval validation
- Comprehensive audit logging
"""
