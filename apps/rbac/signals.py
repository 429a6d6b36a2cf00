"""
RBAC signals for automatic role seeding.

Seeds the system roles when a new company is created and makes the
creating user an owner member.
"""
import logging
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.db import transaction

logger = logging.getLogger(__name__)


@receiver(post_save, sender='tenants.Company')
def seed_roles_on_company_creation(sender, instance, created, **kwargs):
    """
    Seed system roles for a new company.

    The ``admin`` role receives every module/action pair. ``owner`` and
    ``developer`` bypass the matrix and carry no grants. When the company
    has ``created_by`` set, that user becomes an owner member.
    """
    if not created:
        return

    from apps.rbac.models import Role, RolePermission, Member
    from apps.rbac.constants import ACTIONS, MODULES, SYSTEM_ROLES

    with transaction.atomic():
        roles = {}
        for slug, config in SYSTEM_ROLES.items():
            role, _ = Role.objects.get_or_create(
                company=instance,
                slug=slug,
                defaults={
                    'name': config['name'],
                    'description': config['description'],
                    'color': config['color'],
                    'is_default': config['is_default'],
                    'is_system': True,
                }
            )
            roles[slug] = role

        admin = roles['admin']
        if not RolePermission.objects.filter(role=admin).exists():
            RolePermission.objects.bulk_create([
                RolePermission(role=admin, module=module, action=action)
                for module in MODULES
                for action in ACTIONS
            ])

        if instance.created_by_id:
            Member.objects.get_or_create(
                company=instance,
                user_id=instance.created_by_id,
                defaults={
                    'role': roles['owner'],
                    'is_owner': True,
                }
            )

    logger.info(
        f"System roles seeded for company {instance.slug}",
        extra={'company_id': str(instance.id), 'roles': sorted(roles)}
    )
