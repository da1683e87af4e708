import os
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
        Perform startup validation checks when Django initializes.

        Only enforced for processes that serve requests; migrations, shell
        and the test runner start without a production configuration.
        """
        import sys
        serving = 'runserver' in sys.argv[1:2] or 'gunicorn' in os.path.basename(sys.argv[0])
        if not serving:
            return

        self._validate_jwt_configuration()
        logger.info("Startup security validations passed")

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

        if not settings.DEBUG and getattr(settings, 'USING_DEV_SECRETS', False):
            raise ImproperlyConfigured(
                "SECRET_KEY and JWT_SECRET_KEY must be set explicitly when DEBUG is off."
            )
