"""
Django admin configuration for RBAC app.
"""
from django.contrib import admin
from .models import User, Member, Role, RolePermission, MemberPermission, Invitation, AuditLog


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'last_name', 'is_active', 'is_superuser', 'created_at']
    list_filter = ['is_active', 'is_superuser']
    search_fields = ['email', 'first_name', 'last_name']
    ordering = ['email']
    exclude = ['password_hash']
    readonly_fields = ['created_at', 'updated_at', 'last_login_at']


class RolePermissionInline(admin.TabularInline):
    model = RolePermission
    extra = 0
    fields = ['module', 'action']


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'slug', 'is_system', 'is_default']
    list_filter = ['is_system', 'is_default']
    search_fields = ['name', 'slug', 'company__name']
    inlines = [RolePermissionInline]


class MemberPermissionInline(admin.TabularInline):
    model = MemberPermission
    fk_name = 'member'
    extra = 0
    fields = ['module', 'action', 'is_granted']


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ['user', 'company', 'role', 'is_owner', 'is_active', 'joined_at']
    list_filter = ['is_owner', 'is_active']
    search_fields = ['user__email', 'company__name']
    inlines = [MemberPermissionInline]


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ['email', 'company', 'role', 'status', 'expires_at']
    list_filter = ['status']
    search_fields = ['email', 'company__name']
    exclude = ['token']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only: audit entries are never edited."""
    list_display = ['created_at', 'company', 'actor', 'action', 'target_type', 'target_name']
    list_filter = ['action', 'target_type']
    search_fields = ['target_name', 'actor__email']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
