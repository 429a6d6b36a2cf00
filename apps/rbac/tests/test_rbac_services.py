"""
Tests for audited role and member mutations.
"""
import pytest
from unittest import mock
from django.db import DatabaseError

from apps.core.exceptions import ConflictError, NotFoundError, ValidationError
from apps.rbac.constants import AuditAction
from apps.rbac.models import AuditLog, MemberPermission, Role
from apps.rbac.services import MemberService, PermissionService, RoleService


@pytest.mark.django_db
class TestRoleService:

    def test_create_role_with_permissions(self, company, user):
        role = RoleService.create_role(company, {
            'name': 'Fleet Manager',
            'permissions': [
                {'module': 'equipment', 'action': 'view'},
                ('equipment', 'update'),
                ('equipment', 'view'),
            ],
        }, actor=user)

        assert role.slug == 'fleet-manager'
        assert RoleService.permission_codes(role) == ['equipment:update', 'equipment:view']

        entry = AuditLog.objects.for_company(company).by_action(AuditAction.ROLE_CREATED).get()
        assert entry.actor == user
        assert entry.target_id == role.id
        assert entry.new_value['permissions'] == ['equipment:update', 'equipment:view']

    def test_duplicate_name_conflicts(self, company):
        RoleService.create_role(company, {'name': 'Auditor'})

        with pytest.raises(ConflictError):
            RoleService.create_role(company, {'name': 'auditor'})

    def test_unknown_module_rejected(self, company):
        with pytest.raises(ValidationError):
            RoleService.create_role(company, {
                'name': 'Broken',
                'permissions': [('payroll', 'view')],
            })

    def test_update_replaces_permissions(self, company, user):
        role = RoleService.create_role(company, {
            'name': 'Recruiter',
            'permissions': [('employees', 'view')],
        })

        RoleService.update_role(company, role.id, {
            'permissions': [('employees', 'create')],
        }, actor=user)

        role.refresh_from_db()
        assert RoleService.permission_codes(role) == ['employees:create']
        assert AuditLog.objects.by_action(AuditAction.ROLE_UPDATED).filter(target_id=role.id).exists()

    def test_system_role_cannot_be_deleted(self, company):
        owner_role = Role.objects.get(company=company, slug='owner')

        with pytest.raises(ValidationError):
            RoleService.delete_role(company, owner_role.id)

    def test_role_with_members_cannot_be_deleted(self, company, make_member):
        member = make_member(company, grants=[('employees', 'view')])

        with pytest.raises(ConflictError):
            RoleService.delete_role(company, member.role_id)

    def test_delete_role(self, company, user):
        role = RoleService.create_role(company, {'name': 'Temporary'})

        RoleService.delete_role(company, role.id, actor=user)

        assert not Role.objects_with_deleted.filter(id=role.id).exists()
        assert AuditLog.objects.by_action(AuditAction.ROLE_DELETED).filter(target_id=role.id).exists()

    def test_role_of_other_company_is_not_found(self, company, other_company):
        role = Role.objects.get(company=other_company, slug='admin')

        with pytest.raises(NotFoundError):
            RoleService.get_role(company, role.id)


@pytest.mark.django_db
class TestPermissionOverrides:

    def test_set_override_revokes_role_grant(self, company, user, make_member):
        member = make_member(company, grants=[('documents', 'view')])

        MemberService.set_permission_override(
            company, member.id, 'documents', 'view', False, actor=user
        )

        assert not PermissionService.for_member(member).can('documents', 'view')
        entry = AuditLog.objects.by_action(AuditAction.MEMBER_PERMISSION_REVOKED).get()
        assert entry.module == 'documents'
        assert entry.new_value == {'is_granted': False}

    def test_set_override_twice_updates_in_place(self, company, user, make_member):
        member = make_member(company)

        MemberService.set_permission_override(company, member.id, 'equipment', 'create', True, actor=user)
        MemberService.set_permission_override(company, member.id, 'equipment', 'create', False, actor=user)

        overrides = MemberPermission.objects.filter(member=member)
        assert overrides.count() == 1
        assert overrides.get().is_granted is False

        last = AuditLog.objects.by_target('member', member.id).order_by('-created_at').first()
        assert last.old_value == {'is_granted': True}

    def test_remove_override_restores_role_grant(self, company, make_member):
        member = make_member(
            company,
            grants=[('employees', 'update')],
            overrides=[('employees', 'update', False)],
        )

        MemberService.remove_permission_override(company, member.id, 'employees', 'update')

        assert PermissionService.for_member(member).can('employees', 'update')

    def test_remove_missing_override(self, company, make_member):
        member = make_member(company)

        with pytest.raises(NotFoundError):
            MemberService.remove_permission_override(company, member.id, 'employees', 'update')

    def test_invalid_action_rejected(self, company, make_member):
        member = make_member(company)

        with pytest.raises(ValidationError):
            MemberService.set_permission_override(company, member.id, 'employees', 'approve', True)


@pytest.mark.django_db
class TestAuditLog:

    def test_log_action_records_request_metadata(self, company, user, rf):
        request = rf.get('/v1/roles', HTTP_X_FORWARDED_FOR='10.0.0.7, 10.0.0.1')
        request.request_id = 'req-123'

        entry = AuditLog.log_action(
            action=AuditAction.ROLE_UPDATED,
            company=company,
            target_type='role',
            actor=user,
            request=request,
        )

        assert entry.ip_address == '10.0.0.7'
        assert entry.request_id == 'req-123'

    def test_failure_is_swallowed(self, company, user):
        with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('disk full')):
            entry = AuditLog.log_action(
                action=AuditAction.ROLE_CREATED,
                company=company,
                target_type='role',
                actor=user,
            )

        assert entry is None

    def test_mutation_survives_audit_failure(self, company, user):
        with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('disk full')):
            role = RoleService.create_role(company, {'name': 'Dispatcher'}, actor=user)

        assert Role.objects.filter(id=role.id).exists()
        assert not AuditLog.objects.filter(target_id=role.id).exists()

    def test_anonymous_actor_is_stored_as_system(self, company):
        from django.contrib.auth.models import AnonymousUser

        entry = AuditLog.log_action(
            action=AuditAction.ROLE_CREATED,
            company=company,
            target_type='role',
            actor=AnonymousUser(),
        )

        assert entry.actor is None
