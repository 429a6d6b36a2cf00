"""
RBAC models for multi-company access control.

Implements:
- Global User identity (can belong to several companies)
- Member: a user's membership in a company, with owner flag and role
- Role: named bundle of (module, action) grants, system or custom
- RolePermission: one (module, action) grant of a role
- MemberPermission: per-member override that grants or revokes a pair
- Invitation: pending access for an email address
- AuditLog: append-only trail of permission-affecting changes
"""
import logging
import secrets
from datetime import timedelta
from django.db import models, transaction
from django.contrib.auth.hashers import make_password, check_password
from django.utils import timezone

from apps.core.models import BaseModel, BaseModelManager, BaseModelQuerySet
from apps.rbac.constants import (
    ACTION_CHOICES, MODULE_CHOICES, AUDIT_TARGET_TYPES, AuditAction,
    BYPASS_ROLE_SLUGS, INVITATION_EXPIRY_DAYS,
)

logger = logging.getLogger(__name__)


class UserManager(BaseModelManager):
    """
    Manager for User queries.

    Compatible with Django's authentication system and admin interface.
    """

    def active(self):
        """Return only active users."""
        return self.filter(is_active=True)

    def by_email(self, email):
        """Find user by email (case-insensitive)."""
        return self.filter(email__iexact=(email or '').strip()).first()

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email address is required')

        email = self.normalize_email(email)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_superuser', False)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.password_hash = make_password(None)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Required by Django's createsuperuser command."""
        extra_fields['is_superuser'] = True
        return self.create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_email(email):
        """Lowercase the whole address; logins are case-insensitive."""
        return (email or '').strip().lower()

    def get_by_natural_key(self, email):
        return self.get(**{self.model.USERNAME_FIELD: email})


class User(BaseModel):
    """
    Global user identity - can belong to multiple companies.

    Authentication happens at the User level, authorization at the Member
    level. This is the AUTH_USER_MODEL, including for Django admin.
    """

    email = models.EmailField(
        unique=True,
        help_text="User email address (unique globally)"
    )
    password_hash = models.CharField(
        max_length=255,
        help_text="Hashed password",
    )
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether user account is active"
    )
    is_superuser = models.BooleanField(
        default=False,
        help_text="Platform administrator (Django admin access)"
    )
    last_login_at = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'users'
        ordering = ['email']

    def __str__(self):
        return self.email

    @property
    def password(self):
        """Alias for password_hash; Django admin expects a 'password' attribute."""
        return self.password_hash

    @password.setter
    def password(self, value):
        self.password_hash = value

    def check_password(self, raw_password):
        return check_password(raw_password, self.password_hash)

    def set_password(self, raw_password):
        self.password_hash = make_password(raw_password)

    def get_full_name(self):
        """Return full name or email if name not set."""
        if self.first_name or self.last_name:
            return f"{self.first_name} {self.last_name}".strip()
        return self.email

    def get_username(self):
        return self.email

    def update_last_login(self):
        self.last_login_at = timezone.now()
        self.save(update_fields=['last_login_at'])

    @property
    def is_authenticated(self):
        return True

    @property
    def is_anonymous(self):
        return False

    @property
    def is_staff(self):
        return self.is_superuser

    def has_perm(self, perm, obj=None):
        return self.is_superuser

    def has_perms(self, perm_list, obj=None):
        return self.is_superuser

    def has_module_perms(self, app_label):
        return self.is_superuser

    def natural_key(self):
        return (self.email,)


class MemberQuerySet(BaseModelQuerySet):

    def active(self):
        return self.filter(is_active=True)

    def for_user(self, user):
        return self.filter(user=user)

    def get_membership(self, company, user):
        """Active membership of the user in the company, or None."""
        return self.filter(company=company, user=user, is_active=True).select_related('role').first()


class Member(BaseModel):
    """
    A user's membership in a company.

    Owners bypass the permission matrix. A member without a role and
    without overrides has no permissions at all.
    """

    company = models.ForeignKey(
        'tenants.Company',
        on_delete=models.CASCADE,
        related_name='members',
        db_index=True,
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='memberships',
        db_index=True,
    )
    role = models.ForeignKey(
        'Role',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='members',
        help_text="Role granting the member's base permissions"
    )
    is_owner = models.BooleanField(
        default=False,
        help_text="Owners have every permission regardless of role"
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
    )
    joined_at = models.DateTimeField(default=timezone.now)
    deactivated_at = models.DateTimeField(null=True, blank=True)
    invited_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    objects = BaseModelManager.from_queryset(MemberQuerySet)()

    class Meta:
        db_table = 'members'
        unique_together = [('company', 'user')]
        ordering = ['joined_at']
        indexes = [
            models.Index(fields=['user', 'is_active', 'created_at']),
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.company_id}"


class RoleQuerySet(BaseModelQuerySet):

    def system_roles(self):
        return self.filter(is_system=True)

    def custom_roles(self):
        return self.filter(is_system=False)


class Role(BaseModel):
    """
    Per-company role: a named bundle of (module, action) grants.

    System roles are seeded for every company and cannot be renamed or
    deleted. Holders of the ``owner`` and ``developer`` slugs bypass the
    matrix.
    """

    company = models.ForeignKey(
        'tenants.Company',
        on_delete=models.CASCADE,
        related_name='roles',
        db_index=True,
    )
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120)
    description = models.TextField(blank=True, default='')
    color = models.CharField(max_length=20, blank=True, default='')
    is_system = models.BooleanField(
        default=False,
        help_text="System roles cannot be renamed or deleted"
    )
    is_default = models.BooleanField(
        default=False,
        help_text="Suggested role for new invitations; at most one per company"
    )

    objects = BaseModelManager.from_queryset(RoleQuerySet)()

    class Meta:
        db_table = 'roles'
        ordering = ['name']
        unique_together = [('company', 'slug')]

    def __str__(self):
        return f"{self.company_id} - {self.name}"

    @property
    def bypasses_matrix(self):
        return self.slug in BYPASS_ROLE_SLUGS


class RolePermission(BaseModel):
    """One (module, action) grant of a role."""

    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name='permissions',
    )
    module = models.CharField(max_length=60, choices=MODULE_CHOICES)
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)

    class Meta:
        db_table = 'role_permissions'
        unique_together = [('role', 'module', 'action')]

    def __str__(self):
        return f"{self.role_id}: {self.module}:{self.action}"


class MemberPermission(BaseModel):
    """
    Per-member override of one (module, action) pair.

    ``is_granted`` True grants the pair even if the role does not; False
    revokes it even if the role grants it.
    """

    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='permission_overrides',
    )
    module = models.CharField(max_length=60, choices=MODULE_CHOICES)
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    is_granted = models.BooleanField()
    granted_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        db_table = 'member_permissions'
        unique_together = [('member', 'module', 'action')]

    def __str__(self):
        sign = '+' if self.is_granted else '-'
        return f"{self.member_id}: {sign}{self.module}:{self.action}"


def generate_invitation_token():
    return secrets.token_urlsafe(32)


def default_invitation_expiry():
    return timezone.now() + timedelta(days=INVITATION_EXPIRY_DAYS)


class Invitation(BaseModel):
    """Invitation for an email address to join a company with a role."""

    STATUS_PENDING = 'PENDING'
    STATUS_ACCEPTED = 'ACCEPTED'
    STATUS_EXPIRED = 'EXPIRED'
    STATUS_CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    company = models.ForeignKey(
        'tenants.Company',
        on_delete=models.CASCADE,
        related_name='invitations',
    )
    email = models.EmailField(db_index=True)
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name='invitations',
    )
    token = models.CharField(
        max_length=64,
        unique=True,
        default=generate_invitation_token,
    )
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )
    expires_at = models.DateTimeField(default=default_invitation_expiry)
    invited_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'invitations'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.email} -> {self.company_id} ({self.status})"

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()


class AuditLogQuerySet(BaseModelQuerySet):

    def by_action(self, action):
        return self.filter(action=action)

    def by_target(self, target_type, target_id=None):
        qs = self.filter(target_type=target_type)
        if target_id:
            qs = qs.filter(target_id=target_id)
        return qs


class AuditLog(BaseModel):
    """
    Append-only trail of permission-affecting changes.

    Rows are only ever inserted through ``log_action``; nothing updates or
    deletes them.
    """

    company = models.ForeignKey(
        'tenants.Company',
        on_delete=models.CASCADE,
        related_name='audit_logs',
        db_index=True,
    )
    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="User who performed the action (null for system actions)"
    )
    action = models.CharField(
        max_length=50,
        choices=AuditAction.CHOICES,
        db_index=True,
    )
    target_type = models.CharField(
        max_length=20,
        choices=AUDIT_TARGET_TYPES,
        db_index=True,
    )
    target_id = models.UUIDField(null=True, blank=True, db_index=True)
    target_name = models.CharField(max_length=255, blank=True, default='')
    module = models.CharField(max_length=60, blank=True, default='')
    details = models.JSONField(default=dict, blank=True)
    old_value = models.JSONField(null=True, blank=True)
    new_value = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    request_id = models.CharField(max_length=64, blank=True, default='')

    objects = BaseModelManager.from_queryset(AuditLogQuerySet)()

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['company', 'created_at']),
            models.Index(fields=['company', 'action', 'created_at']),
            models.Index(fields=['target_type', 'target_id']),
        ]

    def __str__(self):
        return f"{self.company_id} - {self.actor_id or 'system'} - {self.action}"

    @classmethod
    def log_action(cls, action, company, target_type, actor=None, target_id=None,
                   target_name='', module='', details=None, old_value=None,
                   new_value=None, request=None):
        """
        Append an audit entry. Never raises.

        The insert runs in its own savepoint so a failure cannot break the
        caller's transaction; the failure is logged and None is returned.
        """
        if actor is not None and not getattr(actor, 'is_authenticated', False):
            actor = None

        log_data = {
            'action': action,
            'company': company,
            'actor': actor,
            'target_type': target_type,
            'target_id': target_id,
            'target_name': target_name or '',
            'module': module or '',
            'details': details or {},
            'old_value': old_value,
            'new_value': new_value,
        }

        if request is not None:
            log_data['ip_address'] = cls._get_client_ip(request)
            log_data['request_id'] = str(getattr(request, 'request_id', '') or '')

        try:
            with transaction.atomic():
                return cls.objects.create(**log_data)
        except Exception as e:
            logger.error(
                f"Failed to create audit log: {str(e)}",
                extra={
                    'audit_action': action,
                    'company_id': getattr(company, 'id', None),
                },
                exc_info=True
            )
            return None

    @staticmethod
    def _get_client_ip(request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
