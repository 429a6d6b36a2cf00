"""
RBAC API URLs.

Provides endpoints for:
- Effective permissions of the caller
- Role management
- Members, role changes and permission overrides
- Invitations
- Audit log viewing
"""
from django.urls import path
from apps.rbac.views import (
    PermissionsMeView,
    RoleListView,
    RoleDetailView,
    MemberListView,
    MemberDetailView,
    MemberRoleView,
    MemberDeactivateView,
    MemberReactivateView,
    MemberOverridesView,
    InvitationListView,
    InvitationDetailView,
    AuditLogListView,
)

app_name = 'rbac'

urlpatterns = [
    path('permissions/me', PermissionsMeView.as_view(), name='permissions-me'),

    # Roles
    path('roles', RoleListView.as_view(), name='role-list'),
    path('roles/<uuid:role_id>', RoleDetailView.as_view(), name='role-detail'),

    # Members
    path('members', MemberListView.as_view(), name='member-list'),
    path('members/<uuid:member_id>', MemberDetailView.as_view(), name='member-detail'),
    path('members/<uuid:member_id>/role', MemberRoleView.as_view(), name='member-role'),
    path('members/<uuid:member_id>/deactivate', MemberDeactivateView.as_view(), name='member-deactivate'),
    path('members/<uuid:member_id>/reactivate', MemberReactivateView.as_view(), name='member-reactivate'),
    path('members/<uuid:member_id>/overrides', MemberOverridesView.as_view(), name='member-overrides'),

    # Invitations
    path('invitations', InvitationListView.as_view(), name='invitation-list'),
    path('invitations/<uuid:invitation_id>', InvitationDetailView.as_view(), name='invitation-detail'),

    path('audit-logs', AuditLogListView.as_view(), name='audit-log-list'),
]
