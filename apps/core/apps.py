from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    def ready(self):
        """
        Validate critical configuration when Django initializes.

        Checks only run outside DEBUG so local development and the test
        suite can boot with the defaults from settings.
        """
        if settings.DEBUG:
            return

        self._validate_jwt_configuration()
        self._validate_storage_configuration()

    def _validate_jwt_configuration(self):
        """Validate JWT secret key configuration."""
        jwt_secret = getattr(settings, 'JWT_SECRET_KEY', None)
        secret_key = getattr(settings, 'SECRET_KEY', None)

        if not jwt_secret:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY must be set in environment variables. "
                "Generate a strong key with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )

        if len(jwt_secret) < 32:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY must be at least 32 characters long. "
                f"Current length: {len(jwt_secret)}."
            )

        if jwt_secret == secret_key:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY must be different from SECRET_KEY."
            )

        if len(set(jwt_secret)) < 16:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY has insufficient entropy "
                "(fewer than 16 unique characters)."
            )

        logger.info("JWT configuration validated")

    def _validate_storage_configuration(self):
        """The S3 provider needs a bucket; the local provider needs nothing."""
        if getattr(settings, 'STORAGE_PROVIDER', 'local') != 's3':
            return

        if not getattr(settings, 'S3_BUCKET', None):
            raise ImproperlyConfigured(
                "S3_BUCKET must be set when STORAGE_PROVIDER is 's3'."
            )

        logger.info("Storage configuration validated")
