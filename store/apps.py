from django.apps import AppConfig
from django.conf import settings
import logging

logger = logging.getLogger(__name__)


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "store"
    verbose_name = "Storefront"

    def ready(self):
        """
        With AUTO_MIGRATE on, pending migrations are applied at startup.
        A database that is not reachable yet is logged and left for the
        next boot.
        """
        if not getattr(settings, "AUTO_MIGRATE", False):
            return

        from django.core.management import call_command
        from django.db import DEFAULT_DB_ALIAS
        from django.db.utils import OperationalError, ProgrammingError

        try:
            call_command("migrate", database=DEFAULT_DB_ALIAS, interactive=False, verbosity=0)
            logger.info("Startup migrate applied on database %r.", DEFAULT_DB_ALIAS)
        except (OperationalError, ProgrammingError) as e:
            logger.error("Startup migrate skipped, database not ready: %s", e)
        except Exception:
            logger.exception("Startup migrate failed.")
