"""
RBAC serializers for REST API endpoints.

Provides serialization for:
- Authentication (login, current user)
- Roles and their module/action grants
- Members and permission overrides
- Invitations
- Audit logs
"""
from rest_framework import serializers

from apps.rbac.constants import ACTION_CHOICES, MODULE_CHOICES
from apps.rbac.models import User, Member, Role, MemberPermission, Invitation, AuditLog


# ===== AUTHENTICATION SERIALIZERS =====

class LoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )

    def validate_email(self, value):
        return value.lower()


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'full_name', 'is_active', 'last_login_at']
        read_only_fields = fields


# ===== ROLE SERIALIZERS =====

class PermissionPairSerializer(serializers.Serializer):
    module = serializers.ChoiceField(choices=MODULE_CHOICES)
    action = serializers.ChoiceField(choices=ACTION_CHOICES)


class RoleSerializer(serializers.ModelSerializer):
    """Serializer for Role model."""

    permissions = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Role
        fields = [
            'id', 'name', 'slug', 'description', 'color',
            'is_system', 'is_default', 'permissions', 'member_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_permissions(self, obj):
        return [
            {'module': p.module, 'action': p.action}
            for p in sorted(obj.permissions.all(), key=lambda p: (p.module, p.action))
        ]

    def get_member_count(self, obj):
        count = getattr(obj, 'member_count', None)
        if count is None:
            count = obj.members.count()
        return count


class RoleWriteSerializer(serializers.Serializer):
    """Input for role create/update; uniqueness is checked by RoleService."""

    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    color = serializers.CharField(required=False, allow_blank=True, max_length=20)
    is_default = serializers.BooleanField(required=False)
    permissions = PermissionPairSerializer(many=True, required=False)


# ===== MEMBER SERIALIZERS =====

class MemberPermissionSerializer(serializers.ModelSerializer):
    """Per-member override."""

    class Meta:
        model = MemberPermission
        fields = ['id', 'module', 'action', 'is_granted', 'created_at']
        read_only_fields = fields


class MemberSerializer(serializers.ModelSerializer):
    """Serializer for Member (membership) model."""

    user = UserSerializer(read_only=True)
    role = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = [
            'id', 'user', 'role', 'is_owner', 'is_active',
            'joined_at', 'deactivated_at'
        ]
        read_only_fields = fields

    def get_role(self, obj):
        if obj.role is None:
            return None
        return {'id': str(obj.role.id), 'name': obj.role.name, 'slug': obj.role.slug}


class MemberDetailSerializer(MemberSerializer):
    """Member with its overrides."""

    overrides = MemberPermissionSerializer(source='permission_overrides', many=True, read_only=True)

    class Meta(MemberSerializer.Meta):
        fields = MemberSerializer.Meta.fields + ['overrides']
        read_only_fields = fields


class MemberRoleSerializer(serializers.Serializer):
    role_id = serializers.UUIDField(allow_null=True)


class OverrideSerializer(serializers.Serializer):
    module = serializers.ChoiceField(choices=MODULE_CHOICES)
    action = serializers.ChoiceField(choices=ACTION_CHOICES)
    is_granted = serializers.BooleanField()


class OverrideRemoveSerializer(serializers.Serializer):
    module = serializers.ChoiceField(choices=MODULE_CHOICES)
    action = serializers.ChoiceField(choices=ACTION_CHOICES)


# ===== INVITATION SERIALIZERS =====

class InvitationSerializer(serializers.ModelSerializer):
    role_name = serializers.CharField(source='role.name', read_only=True)
    invited_by_email = serializers.EmailField(source='invited_by.email', read_only=True, default=None)

    class Meta:
        model = Invitation
        fields = [
            'id', 'email', 'role', 'role_name', 'status',
            'expires_at', 'accepted_at', 'invited_by_email', 'created_at'
        ]
        read_only_fields = fields


class InviteSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role_id = serializers.UUIDField()


# ===== AUDIT SERIALIZERS =====

class AuditLogSerializer(serializers.ModelSerializer):
    """Serializer for AuditLog model."""

    actor_email = serializers.EmailField(source='actor.email', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'actor_email', 'action', 'target_type', 'target_id',
            'target_name', 'module', 'details', 'old_value', 'new_value',
            'ip_address', 'request_id', 'created_at'
        ]
        read_only_fields = fields

