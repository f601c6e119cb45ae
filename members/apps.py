from django.apps import AppConfig

#########################
# MembersConfig Class

# This class defines the application configuration for the "members" app.
# It is automatically detected and used by Django when the app is loaded.

# Fields:
# - name: the full Python path to the app (used internally by Django)
# - default_auto_field: sets the default primary key type for models in this app
#   ("BigAutoField" = 64-bit integer autoincrement field)

# ready() connects the signal that keeps lifecycle fields out of ordinary saves.


class MembersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "members"

    def ready(self):
        """Import signal handlers when Django starts up."""
        import members.signals  # noqa: F401
