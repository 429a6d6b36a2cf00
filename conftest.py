"""
Pytest configuration and fixtures.
"""
import pytest
from django.conf import settings
import django
from django.core.management import call_command


def pytest_configure(config):
    """Configure Django settings for tests."""
    settings.DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
    settings.RATELIMIT_ENABLE = False
    settings.SECURE_SSL_REDIRECT = False
    django.setup()


@pytest.fixture(scope='session')
def django_db_setup(django_db_setup, django_db_blocker):
    """Set up test database; the apps ship no migrations."""
    with django_db_blocker.unblock():
        call_command('migrate', '--run-syncdb', verbosity=0)


@pytest.fixture(autouse=True)
def local_storage(settings, tmp_path):
    """Store document files under a per-test directory."""
    settings.STORAGE_PROVIDER = 'local'
    settings.MEDIA_ROOT = str(tmp_path / 'media')
    return tmp_path / 'media'


@pytest.fixture
def api_client():
    """Return DRF API client."""
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def user(db):
    """Create a test user."""
    from apps.rbac.models import User
    return User.objects.create_user(
        email='owner@example.com',
        password='testpass123',
        first_name='Olivia',
        last_name='Owner',
    )


@pytest.fixture
def company(db, user):
    """Create a company owned by ``user``; system roles are seeded on save."""
    from apps.tenants.models import Company
    return Company.objects.create(
        name='Transportes del Sur',
        slug='transportes-del-sur',
        created_by=user,
    )


@pytest.fixture
def other_company(db):
    """Create another company for isolation tests."""
    from apps.tenants.models import Company
    return Company.objects.create(name='Other Company', slug='other-company')


@pytest.fixture
def make_member(db):
    """
    Factory for members with a custom role.

    ``grants`` are (module, action) pairs given to a fresh role; ``overrides``
    are (module, action, is_granted) triples set on the member.
    """
    from apps.rbac.models import User, Role, RolePermission, Member, MemberPermission

    counter = {'n': 0}

    def _make(company, grants=(), overrides=(), role=None, email=None, is_owner=False):
        counter['n'] += 1
        n = counter['n']
        member_user = User.objects.create_user(
            email=email or f'member{n}@example.com',
            password='testpass123',
        )
        if role is None and grants:
            role = Role.objects.create(company=company, name=f'Custom {n}', slug=f'custom-{n}')
            RolePermission.objects.bulk_create([
                RolePermission(role=role, module=module, action=action) for module, action in grants
            ])
        member = Member.objects.create(company=company, user=member_user, role=role, is_owner=is_owner)
        for module, action, is_granted in overrides:
            MemberPermission.objects.create(
                member=member, module=module, action=action, is_granted=is_granted
            )
        return member

    return _make


@pytest.fixture
def auth_client():
    """Factory returning an API client authenticated as ``user``."""
    from rest_framework.test import APIClient
    from apps.rbac.services import AuthService

    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {AuthService.generate_jwt(user)}')
        return client

    return _client


@pytest.fixture
def owner_client(auth_client, user, company):
    """API client of the company owner."""
    return auth_client(user)
