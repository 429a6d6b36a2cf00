"""
Permission matrix axes, system roles and audit action names.
"""

ACTIONS = ('view', 'create', 'update', 'delete')

ACTION_CHOICES = [
    ('view', 'View'),
    ('create', 'Create'),
    ('update', 'Update'),
    ('delete', 'Delete'),
]

MODULES = {
    'dashboard': 'Dashboard',
    'employees': 'Employees',
    'equipment': 'Equipment',
    'documents': 'Documents',
    'commercial.clients': 'Clients',
    'commercial.leads': 'Leads',
    'commercial.contacts': 'Contacts',
    'commercial.quotes': 'Quotes',
    'company.general.users': 'Users',
    'company.general.roles': 'Roles',
    'company.general.audit': 'Audit log',
    'company.documents': 'Company documents',
    'company.cost-centers': 'Cost centers',
    'company.contract-types': 'Contract types',
    'company.job-positions': 'Job positions',
    'company.job-categories': 'Job categories',
    'company.unions': 'Unions',
    'company.collective-agreements': 'Collective agreements',
    'company.vehicle-brands': 'Vehicle brands',
    'company.vehicle-types': 'Vehicle types',
    'company.equipment-owners': 'Equipment owners',
    'company.sectors': 'Sectors',
    'company.type-operatives': 'Type operatives',
    'company.contractors': 'Contractors',
    'company.document-types': 'Document types',
}

MODULE_CHOICES = list(MODULES.items())

MODULE_GROUPS = {
    'Main': ['dashboard', 'employees', 'equipment', 'documents'],
    'Commercial': [
        'commercial.clients',
        'commercial.leads',
        'commercial.contacts',
        'commercial.quotes',
    ],
    'Company - General': [
        'company.general.users',
        'company.general.roles',
        'company.general.audit',
    ],
    'Company - Documents': ['company.documents', 'company.document-types'],
    'Company - HR': [
        'company.cost-centers',
        'company.contract-types',
        'company.job-positions',
        'company.job-categories',
        'company.unions',
        'company.collective-agreements',
    ],
    'Company - Fleet': [
        'company.vehicle-brands',
        'company.vehicle-types',
        'company.equipment-owners',
        'company.sectors',
        'company.type-operatives',
        'company.contractors',
    ],
}

# Slugs whose holders bypass the matrix entirely
BYPASS_ROLE_SLUGS = frozenset({'owner', 'developer'})

SYSTEM_ROLES = {
    'owner': {
        'name': 'Owner',
        'description': 'Full access to the company',
        'color': '#7c3aed',
        'is_default': False,
    },
    'developer': {
        'name': 'Developer',
        'description': 'Technical access for support and maintenance',
        'color': '#0891b2',
        'is_default': False,
    },
    'admin': {
        'name': 'Administrator',
        'description': 'Manages every module of the company',
        'color': '#2563eb',
        'is_default': True,
    },
}


class AuditAction:
    ROLE_CREATED = 'role_created'
    ROLE_UPDATED = 'role_updated'
    ROLE_DELETED = 'role_deleted'
    ROLE_PERMISSION_GRANTED = 'role_permission_granted'
    ROLE_PERMISSION_REVOKED = 'role_permission_revoked'
    MEMBER_INVITED = 'member_invited'
    MEMBER_ROLE_CHANGED = 'member_role_changed'
    MEMBER_DEACTIVATED = 'member_deactivated'
    MEMBER_REACTIVATED = 'member_reactivated'
    MEMBER_PERMISSION_GRANTED = 'member_permission_granted'
    MEMBER_PERMISSION_REVOKED = 'member_permission_revoked'
    INVITATION_ACCEPTED = 'invitation_accepted'
    INVITATION_EXPIRED = 'invitation_expired'
    INVITATION_CANCELLED = 'invitation_cancelled'

    CHOICES = [
        (ROLE_CREATED, 'Role created'),
        (ROLE_UPDATED, 'Role updated'),
        (ROLE_DELETED, 'Role deleted'),
        (ROLE_PERMISSION_GRANTED, 'Role permission granted'),
        (ROLE_PERMISSION_REVOKED, 'Role permission revoked'),
        (MEMBER_INVITED, 'Member invited'),
        (MEMBER_ROLE_CHANGED, 'Member role changed'),
        (MEMBER_DEACTIVATED, 'Member deactivated'),
        (MEMBER_REACTIVATED, 'Member reactivated'),
        (MEMBER_PERMISSION_GRANTED, 'Member permission granted'),
        (MEMBER_PERMISSION_REVOKED, 'Member permission revoked'),
        (INVITATION_ACCEPTED, 'Invitation accepted'),
        (INVITATION_EXPIRED, 'Invitation expired'),
        (INVITATION_CANCELLED, 'Invitation cancelled'),
    ]


AUDIT_TARGET_TYPES = [
    ('role', 'Role'),
    ('member', 'Member'),
    ('invitation', 'Invitation'),
]

INVITATION_EXPIRY_DAYS = 7
