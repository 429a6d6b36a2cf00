"""
RBAC and Authentication services.

Implements:
- Permission resolution: role grants merged with member overrides into a
  deny-by-default module/action map
- RoleService, MemberService, InvitationService: audited mutations
- AuditService: read access to the audit trail
- AuthService: JWT authentication
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Any, Tuple, Union

import jwt
from django.conf import settings
from django.core.paginator import Paginator
from django.db import IntegrityError, transaction
from django.db.models import Count, ProtectedError, Q
from django.utils import timezone
from django.utils.text import slugify

from apps.core.exceptions import (
    AuthenticationError, ConflictError, NotFoundError,
    PermissionDeniedError, ValidationError,
)
from apps.core.services.email_service import EmailServiceError, send_invitation_email
from apps.rbac.constants import ACTIONS, MODULES, BYPASS_ROLE_SLUGS, AuditAction
from apps.rbac.models import (
    User, Member, Role, RolePermission, MemberPermission, Invitation, AuditLog,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleGrant:
    """A (module, action) pair granted by the member's role."""
    module: str
    action: str


@dataclass(frozen=True)
class Override:
    """A per-member exception that grants or revokes one pair."""
    module: str
    action: str
    is_granted: bool


PermissionEntry = Union[RoleGrant, Override]


def empty_actions() -> Dict[str, bool]:
    return {action: False for action in ACTIONS}


def resolve_permission_map(entries: Iterable[PermissionEntry]) -> Dict[str, Dict[str, bool]]:
    """
    Merge role grants and overrides into a module -> action -> bool map.

    Role grants are applied first and overrides last, so an override always
    wins regardless of the order of ``entries``. Modules that never appear
    are absent from the map and read as all-false.
    """
    entries = list(entries)
    permission_map: Dict[str, Dict[str, bool]] = {}

    for entry in entries:
        if isinstance(entry, RoleGrant):
            permission_map.setdefault(entry.module, empty_actions())[entry.action] = True

    for entry in entries:
        if isinstance(entry, Override):
            permission_map.setdefault(entry.module, empty_actions())[entry.action] = entry.is_granted

    return permission_map


@dataclass
class MemberPermissions:
    """Effective permissions of one member in one company, for one request."""

    member_id: Optional[str] = None
    role_id: Optional[str] = None
    role_slug: Optional[str] = None
    role_name: Optional[str] = None
    is_owner: bool = False
    permissions: Dict[str, Dict[str, bool]] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> 'MemberPermissions':
        """No membership: every check is denied."""
        return cls()

    @property
    def bypass(self) -> bool:
        return self.is_owner or self.role_slug in BYPASS_ROLE_SLUGS

    def can(self, module: str, action: str) -> bool:
        if self.bypass:
            return True
        return self.permissions.get(module, {}).get(action, False)

    def can_any(self, pairs: Iterable[Tuple[str, str]]) -> bool:
        return any(self.can(module, action) for module, action in pairs)

    def can_all(self, pairs: Iterable[Tuple[str, str]]) -> bool:
        return all(self.can(module, action) for module, action in pairs)

    def module_permissions(self, module: str) -> Dict[str, bool]:
        return {f'can_{action}': self.can(module, action) for action in ACTIONS}

    def to_dict(self) -> Dict[str, Any]:
        if self.bypass:
            permission_map = {
                module: {action: True for action in ACTIONS} for module in MODULES
            }
        else:
            permission_map = {
                module: {action: self.can(module, action) for action in ACTIONS}
                for module in MODULES
            }
        return {
            'member_id': self.member_id,
            'role': {
                'id': self.role_id,
                'slug': self.role_slug,
                'name': self.role_name,
            } if self.role_id else None,
            'is_owner': self.is_owner,
            'bypass': self.bypass,
            'permissions': permission_map,
        }


def _validate_pair(module: str, action: str):
    if module not in MODULES:
        raise ValidationError(f"Unknown module '{module}'", {'module': module})
    if action not in ACTIONS:
        raise ValidationError(f"Unknown action '{action}'", {'action': action})


def _normalize_pairs(permissions) -> List[Tuple[str, str]]:
    """Accept dicts with module/action keys or (module, action) tuples."""
    pairs = []
    for item in permissions or []:
        if isinstance(item, dict):
            module, action = item.get('module'), item.get('action')
        else:
            module, action = item
        _validate_pair(module, action)
        if (module, action) not in pairs:
            pairs.append((module, action))
    return pairs


class PermissionService:
    """
    Resolve effective permissions for a user in a company.

    Nothing here is cached across requests: roles and overrides can change
    at any time, so the map is rebuilt on every request and memoized only
    on the request object by the middleware.
    """

    @classmethod
    def get_permissions(cls, user, company) -> Optional[MemberPermissions]:
        """
        Compute the member's permission map.

        Args:
            user: User instance
            company: Company instance

        Returns:
            MemberPermissions, or None when the user has no active
            membership in the company
        """
        if user is None or company is None or not getattr(user, 'is_authenticated', False):
            return None

        member = Member.objects.get_membership(company, user)
        if member is None:
            return None

        return cls.for_member(member)

    @classmethod
    def for_member(cls, member: Member) -> MemberPermissions:
        entries: List[PermissionEntry] = []
        role = member.role

        if role is not None:
            entries.extend(
                RoleGrant(module, action)
                for module, action in RolePermission.objects.filter(role=role)
                .values_list('module', 'action')
            )

        entries.extend(
            Override(module, action, is_granted)
            for module, action, is_granted in MemberPermission.objects.filter(member=member)
            .values_list('module', 'action', 'is_granted')
        )

        return MemberPermissions(
            member_id=str(member.id),
            role_id=str(role.id) if role else None,
            role_slug=role.slug if role else None,
            role_name=role.name if role else None,
            is_owner=member.is_owner,
            permissions=resolve_permission_map(entries),
        )

    @classmethod
    def _resolve(cls, user, company) -> MemberPermissions:
        return cls.get_permissions(user, company) or MemberPermissions.empty()

    @classmethod
    def check_permission(cls, user, company, module: str, action: str) -> bool:
        return cls._resolve(user, company).can(module, action)

    @classmethod
    def check_any_permission(cls, user, company, pairs) -> bool:
        return cls._resolve(user, company).can_any(pairs)

    @classmethod
    def check_all_permissions(cls, user, company, pairs) -> bool:
        return cls._resolve(user, company).can_all(pairs)

    @classmethod
    def check_is_owner(cls, user, company) -> bool:
        return cls._resolve(user, company).is_owner

    @classmethod
    def check_is_system_role(cls, user, company) -> bool:
        """True when the member's role slug is one of the bypass slugs."""
        return cls._resolve(user, company).role_slug in BYPASS_ROLE_SLUGS

    @classmethod
    def get_module_permissions(cls, user, company, module: str) -> Dict[str, bool]:
        return cls._resolve(user, company).module_permissions(module)


class RoleService:
    """Role management with audit trail."""

    @staticmethod
    def list_roles(company):
        return (
            Role.objects.for_company(company)
            .annotate(member_count=Count('members', distinct=True))
            .prefetch_related('permissions')
            .order_by('-is_system', 'name')
        )

    @staticmethod
    def get_role(company, role_id) -> Role:
        try:
            return Role.objects.for_company(company).get(id=role_id)
        except (Role.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Role not found', {'role_id': str(role_id)})

    @staticmethod
    def permission_codes(role: Role) -> List[str]:
        return sorted(f'{p.module}:{p.action}' for p in role.permissions.all())

    @classmethod
    def _snapshot(cls, role: Role) -> Dict[str, Any]:
        return {
            'name': role.name,
            'description': role.description,
            'color': role.color,
            'is_default': role.is_default,
            'permissions': cls.permission_codes(role),
        }

    @staticmethod
    def _ensure_unique(company, name: str, slug: str, exclude_id=None):
        queryset = Role.objects_with_deleted.filter(company=company)
        if exclude_id:
            queryset = queryset.exclude(id=exclude_id)
        if queryset.filter(name__iexact=name).exists() or queryset.filter(slug=slug).exists():
            raise ConflictError('A role with this name already exists', {'name': name})

    @staticmethod
    def _clear_default(company, exclude_id=None):
        queryset = Role.objects.for_company(company).filter(is_default=True)
        if exclude_id:
            queryset = queryset.exclude(id=exclude_id)
        queryset.update(is_default=False)

    @staticmethod
    def _replace_permissions(role: Role, pairs: List[Tuple[str, str]]):
        RolePermission.objects_with_deleted.filter(role=role).hard_delete()
        RolePermission.objects.bulk_create([
            RolePermission(role=role, module=module, action=action)
            for module, action in pairs
        ])

    @classmethod
    def create_role(cls, company, data: Dict[str, Any], actor=None, request=None) -> Role:
        """
        Create a custom role with its permissions.

        Args:
            company: Company instance
            data: name, description, color, is_default, permissions
            actor: User performing the change
            request: Optional request for IP/request-id capture

        Returns:
            Created Role

        Raises:
            ValidationError: empty name or unknown module/action
            ConflictError: a role with the same name or slug exists
        """
        name = (data.get('name') or '').strip()
        slug = slugify(name)
        if not slug:
            raise ValidationError('Role name is required', {'name': name})

        pairs = _normalize_pairs(data.get('permissions'))
        cls._ensure_unique(company, name, slug)

        try:
            with transaction.atomic():
                if data.get('is_default'):
                    cls._clear_default(company)

                role = Role.objects.create(
                    company=company,
                    name=name,
                    slug=slug,
                    description=data.get('description') or '',
                    color=data.get('color') or '',
                    is_default=bool(data.get('is_default')),
                    is_system=False,
                )
                cls._replace_permissions(role, pairs)
        except IntegrityError:
            raise ConflictError('A role with this name already exists', {'name': name})

        logger.info(
            f"Role created: {role.slug}",
            extra={'company_id': str(company.id), 'role_id': str(role.id)}
        )

        AuditLog.log_action(
            action=AuditAction.ROLE_CREATED,
            company=company,
            actor=actor,
            target_type='role',
            target_id=role.id,
            target_name=role.name,
            new_value=cls._snapshot(role),
            request=request,
        )
        return role

    @classmethod
    def update_role(cls, company, role_id, data: Dict[str, Any], actor=None, request=None) -> Role:
        """
        Update a role. System roles keep their name and description.

        When ``permissions`` is present the role's grants are replaced as a
        whole inside one transaction.
        """
        role = cls.get_role(company, role_id)
        old_value = cls._snapshot(role)

        if not role.is_system:
            if 'name' in data:
                name = (data.get('name') or '').strip()
                slug = slugify(name)
                if not slug:
                    raise ValidationError('Role name is required', {'name': name})
                cls._ensure_unique(company, name, slug, exclude_id=role.id)
                role.name = name
                role.slug = slug
            if 'description' in data:
                role.description = data.get('description') or ''

        if 'color' in data:
            role.color = data.get('color') or ''

        pairs = None
        if 'permissions' in data:
            pairs = _normalize_pairs(data.get('permissions'))

        try:
            with transaction.atomic():
                if 'is_default' in data:
                    role.is_default = bool(data.get('is_default'))
                    if role.is_default:
                        cls._clear_default(company, exclude_id=role.id)
                role.save()
                if pairs is not None:
                    cls._replace_permissions(role, pairs)
        except IntegrityError:
            raise ConflictError('A role with this name already exists', {'name': role.name})

        AuditLog.log_action(
            action=AuditAction.ROLE_UPDATED,
            company=company,
            actor=actor,
            target_type='role',
            target_id=role.id,
            target_name=role.name,
            old_value=old_value,
            new_value=cls._snapshot(role),
            request=request,
        )
        return role

    @classmethod
    def delete_role(cls, company, role_id, actor=None, request=None):
        """
        Delete a custom role.

        Raises:
            ValidationError: the role is a system role
            ConflictError: members are still assigned to the role
        """
        role = cls.get_role(company, role_id)

        if role.is_system:
            raise ValidationError('System roles cannot be deleted', {'role_id': str(role.id)})

        if Member.objects_with_deleted.filter(role=role).exists():
            raise ConflictError(
                'Role has assigned members and cannot be deleted',
                {'role_id': str(role.id)}
            )

        old_value = cls._snapshot(role)
        role_pk, role_name = role.id, role.name

        try:
            with transaction.atomic():
                role.hard_delete()
        except ProtectedError:
            raise ConflictError(
                'Role has assigned members and cannot be deleted',
                {'role_id': str(role_pk)}
            )

        AuditLog.log_action(
            action=AuditAction.ROLE_DELETED,
            company=company,
            actor=actor,
            target_type='role',
            target_id=role_pk,
            target_name=role_name,
            old_value=old_value,
            request=request,
        )


class MemberService:
    """Membership management with audit trail."""

    @staticmethod
    def list_members(company, is_active=None, search=None):
        queryset = Member.objects.for_company(company).select_related('user', 'role')
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if search:
            queryset = queryset.filter(
                Q(user__email__icontains=search)
                | Q(user__first_name__icontains=search)
                | Q(user__last_name__icontains=search)
            )
        return queryset.order_by('joined_at')

    @staticmethod
    def get_member(company, member_id) -> Member:
        try:
            return (
                Member.objects.for_company(company)
                .select_related('user', 'role')
                .get(id=member_id)
            )
        except (Member.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Member not found', {'member_id': str(member_id)})

    @staticmethod
    def _target_name(member: Member) -> str:
        return member.user.email

    @classmethod
    def update_member_role(cls, company, member_id, role_id, actor=None, request=None) -> Member:
        member = cls.get_member(company, member_id)

        if member.is_owner:
            raise ValidationError('The role of an owner cannot be changed', {'member_id': str(member.id)})

        new_role = RoleService.get_role(company, role_id) if role_id else None
        old_role = member.role

        member.role = new_role
        member.save(update_fields=['role', 'updated_at'])

        AuditLog.log_action(
            action=AuditAction.MEMBER_ROLE_CHANGED,
            company=company,
            actor=actor,
            target_type='member',
            target_id=member.id,
            target_name=cls._target_name(member),
            old_value={'role_id': str(old_role.id) if old_role else None,
                       'role_name': old_role.name if old_role else None},
            new_value={'role_id': str(new_role.id) if new_role else None,
                       'role_name': new_role.name if new_role else None},
            request=request,
        )
        return member

    @classmethod
    def deactivate_member(cls, company, member_id, actor=None, request=None) -> Member:
        member = cls.get_member(company, member_id)

        if member.is_owner:
            raise ValidationError('Owners cannot be deactivated', {'member_id': str(member.id)})
        if actor is not None and member.user_id == getattr(actor, 'id', None):
            raise ValidationError('You cannot deactivate yourself', {'member_id': str(member.id)})

        member.is_active = False
        member.deactivated_at = timezone.now()
        member.save(update_fields=['is_active', 'deactivated_at', 'updated_at'])

        AuditLog.log_action(
            action=AuditAction.MEMBER_DEACTIVATED,
            company=company,
            actor=actor,
            target_type='member',
            target_id=member.id,
            target_name=cls._target_name(member),
            old_value={'is_active': True},
            new_value={'is_active': False},
            request=request,
        )
        return member

    @classmethod
    def reactivate_member(cls, company, member_id, actor=None, request=None) -> Member:
        member = cls.get_member(company, member_id)

        member.is_active = True
        member.deactivated_at = None
        member.save(update_fields=['is_active', 'deactivated_at', 'updated_at'])

        AuditLog.log_action(
            action=AuditAction.MEMBER_REACTIVATED,
            company=company,
            actor=actor,
            target_type='member',
            target_id=member.id,
            target_name=cls._target_name(member),
            old_value={'is_active': False},
            new_value={'is_active': True},
            request=request,
        )
        return member

    @staticmethod
    def list_overrides(member: Member):
        return MemberPermission.objects.filter(member=member).order_by('module', 'action')

    @classmethod
    def set_permission_override(cls, company, member_id, module: str, action: str,
                                is_granted: bool, actor=None, request=None) -> MemberPermission:
        """Grant or revoke one (module, action) pair for a member, whatever the role says."""
        _validate_pair(module, action)
        member = cls.get_member(company, member_id)

        existing = MemberPermission.objects_with_deleted.filter(
            member=member, module=module, action=action
        ).first()
        old_value = None
        if existing is not None and existing.deleted_at is None:
            old_value = {'is_granted': existing.is_granted}

        with transaction.atomic():
            if existing is not None:
                existing.is_granted = is_granted
                existing.granted_by = actor if getattr(actor, 'is_authenticated', False) else None
                existing.deleted_at = None
                existing.save()
                override = existing
            else:
                override = MemberPermission.objects.create(
                    member=member,
                    module=module,
                    action=action,
                    is_granted=is_granted,
                    granted_by=actor if getattr(actor, 'is_authenticated', False) else None,
                )

        AuditLog.log_action(
            action=(AuditAction.MEMBER_PERMISSION_GRANTED if is_granted
                    else AuditAction.MEMBER_PERMISSION_REVOKED),
            company=company,
            actor=actor,
            target_type='member',
            target_id=member.id,
            target_name=cls._target_name(member),
            module=module,
            details={'action': action},
            old_value=old_value,
            new_value={'is_granted': is_granted},
            request=request,
        )
        return override

    @classmethod
    def remove_permission_override(cls, company, member_id, module: str, action: str,
                                   actor=None, request=None):
        """Drop an override so the role's grant applies again."""
        member = cls.get_member(company, member_id)

        override = MemberPermission.objects.filter(member=member, module=module, action=action).first()
        if override is None:
            raise NotFoundError('Permission override not found', {'module': module, 'action': action})

        old_value = {'is_granted': override.is_granted}
        override.hard_delete()

        AuditLog.log_action(
            action=AuditAction.MEMBER_PERMISSION_REVOKED,
            company=company,
            actor=actor,
            target_type='member',
            target_id=member.id,
            target_name=cls._target_name(member),
            module=module,
            details={'action': action, 'override_removed': True},
            old_value=old_value,
            request=request,
        )


class InvitationService:
    """Invitations of email addresses into a company."""

    @staticmethod
    def list_invitations(company, status=None):
        queryset = Invitation.objects.for_company(company).select_related('role', 'invited_by')
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('-created_at')

    @staticmethod
    def get_invitation(company, invitation_id) -> Invitation:
        try:
            return Invitation.objects.for_company(company).select_related('role').get(id=invitation_id)
        except (Invitation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Invitation not found', {'invitation_id': str(invitation_id)})

    @classmethod
    def invite_user(cls, company, email: str, role_id, actor=None, request=None) -> Invitation:
        """
        Invite an email address to join the company with a role.

        Raises:
            ValidationError: missing email or role not in the company
            ConflictError: already a member or a pending invitation exists
        """
        email = User.objects.normalize_email(email)
        if not email:
            raise ValidationError('Email is required', {'email': email})

        try:
            role = Role.objects.for_company(company).get(id=role_id)
        except (Role.DoesNotExist, ValueError, TypeError):
            raise ValidationError('Invalid role', {'role_id': str(role_id)})

        if Member.objects.for_company(company).filter(user__email__iexact=email, is_active=True).exists():
            raise ConflictError('User is already a member of this company', {'email': email})

        pending = Invitation.objects.for_company(company).filter(
            email__iexact=email,
            status=Invitation.STATUS_PENDING,
            expires_at__gt=timezone.now(),
        )
        if pending.exists():
            raise ConflictError('A pending invitation already exists for this email', {'email': email})

        invitation = Invitation.objects.create(
            company=company,
            email=email,
            role=role,
            invited_by=actor if getattr(actor, 'is_authenticated', False) else None,
        )

        AuditLog.log_action(
            action=AuditAction.MEMBER_INVITED,
            company=company,
            actor=actor,
            target_type='invitation',
            target_id=invitation.id,
            target_name=email,
            new_value={'email': email, 'role': role.name},
            request=request,
        )

        cls._send_email(invitation, actor)
        return invitation

    @staticmethod
    def _send_email(invitation: Invitation, actor):
        inviter = actor.get_full_name() if getattr(actor, 'is_authenticated', False) else invitation.company.name
        try:
            send_invitation_email(
                user_email=invitation.email,
                company_name=invitation.company.name,
                inviter_name=inviter,
                role_name=invitation.role.name,
                invitation_url=f"{settings.FRONTEND_URL}/invitations/{invitation.token}",
            )
        except EmailServiceError as e:
            logger.warning(
                f"Invitation email failed: {e}",
                extra={'invitation_id': str(invitation.id), 'company_id': str(invitation.company_id)}
            )

    @classmethod
    def cancel_invitation(cls, company, invitation_id, actor=None, request=None) -> Invitation:
        invitation = cls.get_invitation(company, invitation_id)

        if invitation.status != Invitation.STATUS_PENDING:
            raise ValidationError(
                'Only pending invitations can be cancelled',
                {'status': invitation.status}
            )

        invitation.status = Invitation.STATUS_CANCELLED
        invitation.save(update_fields=['status', 'updated_at'])

        AuditLog.log_action(
            action=AuditAction.INVITATION_CANCELLED,
            company=company,
            actor=actor,
            target_type='invitation',
            target_id=invitation.id,
            target_name=invitation.email,
            request=request,
        )
        return invitation

    @classmethod
    def accept_invitation(cls, token: str, user, request=None) -> Member:
        """
        Accept an invitation as the authenticated user.

        Creates the membership, or reactivates an existing one with the
        invited role.

        Raises:
            NotFoundError: unknown token
            ValidationError: invitation not pending or expired
            PermissionDeniedError: the invitation belongs to another email
        """
        invitation = Invitation.objects.select_related('company', 'role').filter(token=token).first()
        if invitation is None:
            raise NotFoundError('Invitation not found')

        if invitation.status != Invitation.STATUS_PENDING:
            raise ValidationError('Invitation is no longer valid', {'status': invitation.status})

        company = invitation.company

        if invitation.is_expired:
            invitation.status = Invitation.STATUS_EXPIRED
            invitation.save(update_fields=['status', 'updated_at'])
            AuditLog.log_action(
                action=AuditAction.INVITATION_EXPIRED,
                company=company,
                target_type='invitation',
                target_id=invitation.id,
                target_name=invitation.email,
                request=request,
            )
            raise ValidationError('Invitation has expired', {'expires_at': invitation.expires_at.isoformat()})

        if User.objects.normalize_email(user.email) != invitation.email.lower():
            raise PermissionDeniedError('This invitation was sent to a different email address')

        with transaction.atomic():
            member = Member.objects_with_deleted.filter(company=company, user=user).first()
            if member is not None:
                member.role = invitation.role
                member.is_active = True
                member.deactivated_at = None
                member.deleted_at = None
                member.save()
            else:
                member = Member.objects.create(
                    company=company,
                    user=user,
                    role=invitation.role,
                    invited_by=invitation.invited_by,
                )

            invitation.status = Invitation.STATUS_ACCEPTED
            invitation.accepted_at = timezone.now()
            invitation.save(update_fields=['status', 'accepted_at', 'updated_at'])

        AuditLog.log_action(
            action=AuditAction.INVITATION_ACCEPTED,
            company=company,
            actor=user,
            target_type='invitation',
            target_id=invitation.id,
            target_name=invitation.email,
            new_value={'member_id': str(member.id), 'role': invitation.role.name},
            request=request,
        )
        return member


class AuditService:
    """Read access to the audit trail."""

    DEFAULT_PAGE_SIZE = 20

    @classmethod
    def list_logs(cls, company, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE,
                  target_type: Optional[str] = None, action: Optional[str] = None) -> Dict[str, Any]:
        """
        Return one page of audit entries, newest first.

        Returns:
            Dict with ``results`` (AuditLog list), ``count``, ``page``,
            ``page_size`` and ``total_pages``
        """
        queryset = AuditLog.objects.for_company(company).select_related('actor')
        if target_type:
            queryset = queryset.by_target(target_type)
        if action:
            queryset = queryset.by_action(action)

        paginator = Paginator(queryset.order_by('-created_at'), page_size)
        page_obj = paginator.get_page(page)

        return {
            'results': list(page_obj.object_list),
            'count': paginator.count,
            'page': page_obj.number,
            'page_size': page_size,
            'total_pages': paginator.num_pages,
        }


class AuthService:
    """
    Service for authentication operations: JWT issue/validation and login.
    """

    @classmethod
    def generate_jwt(cls, user: User) -> str:
        """
        Generate JWT token for a user.

        Args:
            user: User instance

        Returns:
            JWT token string
        """
        now = datetime.utcnow()
        payload = {
            'user_id': str(user.id),
            'email': user.email,
            'exp': now + timedelta(hours=settings.JWT_EXPIRATION_HOURS),
            'iat': now,
        }

        return jwt.encode(
            payload,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

    @classmethod
    def validate_jwt(cls, token: str) -> Optional[Dict[str, Any]]:
        """
        Validate JWT token and return payload.

        Returns:
            Decoded payload dict or None if invalid or expired
        """
        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None

    @classmethod
    def get_user_from_jwt(cls, token: str) -> Optional[User]:
        payload = cls.validate_jwt(token)
        if not payload:
            return None

        user_id = payload.get('user_id')
        if not user_id:
            return None

        try:
            return User.objects.get(id=user_id, is_active=True)
        except (User.DoesNotExist, ValueError):
            return None

    @classmethod
    def login(cls, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate with email and password.

        Returns:
            Dict with ``user`` and ``token``

        Raises:
            AuthenticationError: unknown email, inactive user or wrong password
        """
        user = User.objects.by_email(email)

        if user is None or not user.is_active or not user.check_password(password or ''):
            raise AuthenticationError('Invalid email or password')

        user.update_last_login()

        return {
            'user': user,
            'token': cls.generate_jwt(user),
        }
