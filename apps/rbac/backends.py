"""
Email authentication backend for the Django admin.
"""
from django.contrib.auth.backends import BaseBackend
from django.contrib.auth import get_user_model


class EmailAuthBackend(BaseBackend):
    """Authenticate with email and password instead of a username."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        # The admin login form posts the email as 'username'
        email = username or kwargs.get('email')
        if not email or not password:
            return None

        User = get_user_model()
        user = User.objects.by_email(email)
        if user is None:
            # Hash once anyway so unknown emails take as long as wrong passwords
            User().set_password(password)
            return None

        if user.is_active and user.check_password(password):
            return user
        return None

    def get_user(self, user_id):
        User = get_user_model()
        try:
            return User.objects.get(pk=user_id, is_active=True)
        except User.DoesNotExist:
            return None
