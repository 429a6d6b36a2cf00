"""
Tests for permission resolution.

Covers the pure merge of role grants and overrides, the owner/system role
bypass, and the database-backed PermissionService.
"""
import pytest
from hypothesis import given, strategies as st

from apps.rbac.constants import ACTIONS, MODULES
from apps.rbac.models import Role
from apps.rbac.services import (
    MemberPermissions, Override, PermissionService, RoleGrant, resolve_permission_map,
)


modules = st.sampled_from(sorted(MODULES))
actions = st.sampled_from(ACTIONS)
grants = st.builds(RoleGrant, modules, actions)
overrides = st.builds(Override, modules, actions, st.booleans())


class TestResolvePermissionMap:
    """Merge of role grants and member overrides."""

    def test_empty_entries_deny_everything(self):
        permissions = MemberPermissions(permissions=resolve_permission_map([]))

        for module in MODULES:
            for action in ACTIONS:
                assert permissions.can(module, action) is False

    def test_role_grant_allows_only_that_pair(self):
        permission_map = resolve_permission_map([RoleGrant('employees', 'view')])

        assert permission_map['employees'] == {
            'view': True, 'create': False, 'update': False, 'delete': False,
        }
        assert 'equipment' not in permission_map

    def test_revoking_override_beats_role_grant(self):
        permission_map = resolve_permission_map([
            Override('employees', 'view', False),
            RoleGrant('employees', 'view'),
        ])

        assert permission_map['employees']['view'] is False

    def test_granting_override_without_role(self):
        permission_map = resolve_permission_map([Override('documents', 'delete', True)])

        assert permission_map['documents']['delete'] is True
        assert permission_map['documents']['view'] is False

    @given(st.lists(grants), st.lists(overrides))
    def test_override_always_wins(self, role_grants, member_overrides):
        """The last override for a pair decides it, whatever the role says."""
        permissions = MemberPermissions(
            permissions=resolve_permission_map(list(member_overrides) + list(role_grants))
        )

        last_override = {}
        for override in member_overrides:
            last_override[(override.module, override.action)] = override.is_granted

        for (module, action), is_granted in last_override.items():
            assert permissions.can(module, action) is is_granted

    @given(st.lists(st.one_of(grants, overrides)))
    def test_unmentioned_pairs_are_denied(self, entries):
        permissions = MemberPermissions(permissions=resolve_permission_map(entries))
        mentioned = {(entry.module, entry.action) for entry in entries}

        for module in MODULES:
            for action in ACTIONS:
                if (module, action) not in mentioned:
                    assert permissions.can(module, action) is False

    @given(st.lists(grants))
    def test_role_grants_without_overrides_are_allowed(self, role_grants):
        permissions = MemberPermissions(permissions=resolve_permission_map(role_grants))

        for grant in role_grants:
            assert permissions.can(grant.module, grant.action) is True


class TestBypass:
    """Owners and system role slugs skip the matrix."""

    @given(modules, actions)
    def test_owner_can_everything(self, module, action):
        assert MemberPermissions(is_owner=True).can(module, action) is True

    @pytest.mark.parametrize('slug', ['owner', 'developer'])
    def test_system_slugs_bypass(self, slug):
        permissions = MemberPermissions(role_slug=slug)

        assert permissions.bypass is True
        assert permissions.can('company.general.roles', 'delete') is True

    def test_admin_slug_does_not_bypass(self):
        permissions = MemberPermissions(role_slug='admin')

        assert permissions.bypass is False
        assert permissions.can('employees', 'view') is False

    def test_empty_permissions_deny(self):
        assert MemberPermissions.empty().can('dashboard', 'view') is False

    def test_to_dict_expands_bypass_to_full_matrix(self):
        data = MemberPermissions(is_owner=True).to_dict()

        assert data['bypass'] is True
        assert all(all(actions.values()) for actions in data['permissions'].values())
        assert set(data['permissions']) == set(MODULES)


@pytest.mark.django_db
class TestPermissionService:
    """Permission maps computed from the database."""

    def test_creator_is_owner(self, user, company):
        permissions = PermissionService.get_permissions(user, company)

        assert permissions.is_owner is True
        assert permissions.role_slug == 'owner'
        assert PermissionService.check_permission(user, company, 'employees', 'delete')

    def test_role_grants_apply(self, company, make_member):
        member = make_member(company, grants=[('employees', 'view'), ('employees', 'create')])

        permissions = PermissionService.for_member(member)

        assert permissions.can('employees', 'view')
        assert permissions.can('employees', 'create')
        assert not permissions.can('employees', 'delete')
        assert not permissions.can('equipment', 'view')

    def test_override_revokes_role_grant(self, company, make_member):
        member = make_member(
            company,
            grants=[('equipment', 'view'), ('equipment', 'update')],
            overrides=[('equipment', 'update', False), ('documents', 'view', True)],
        )

        permissions = PermissionService.for_member(member)

        assert permissions.can('equipment', 'view')
        assert not permissions.can('equipment', 'update')
        assert permissions.can('documents', 'view')

    def test_developer_role_bypasses(self, company, make_member):
        developer = Role.objects.get(company=company, slug='developer')
        member = make_member(company, role=developer)

        assert PermissionService.for_member(member).can('company.general.roles', 'delete')

    def test_admin_role_is_seeded_with_every_pair(self, company, make_member):
        admin = Role.objects.get(company=company, slug='admin')
        member = make_member(company, role=admin)

        permissions = PermissionService.for_member(member)

        assert not permissions.bypass
        assert permissions.can_all((module, action) for module in MODULES for action in ACTIONS)

    def test_member_without_role_is_denied(self, company, make_member):
        member = make_member(company)

        assert not PermissionService.for_member(member).can('dashboard', 'view')

    def test_non_member_gets_none(self, company, other_company, user):
        assert PermissionService.get_permissions(user, other_company) is None
        assert not PermissionService.check_permission(user, other_company, 'employees', 'view')

    def test_inactive_member_gets_none(self, company, make_member):
        member = make_member(company, grants=[('employees', 'view')])
        member.is_active = False
        member.save()

        assert PermissionService.get_permissions(member.user, company) is None
