from django.contrib import admin

from utils.admin_helpers import AdminHelperMixin

from .models import SiteConfiguration


@admin.register(SiteConfiguration)
class SiteConfigurationAdmin(AdminHelperMixin, admin.ModelAdmin):
    def has_add_permission(self, request):
        # Only allow adding if no config exists
        return not SiteConfiguration.objects.exists()

    def has_delete_permission(self, request, obj=None):
        # Prevent deletion
        return False

    def has_change_permission(self, request, obj=None):
        # Only allow superusers or the Registry Admins group to edit
        return (
            request.user.is_superuser
            or request.user.groups.filter(name="Registry Admins").exists()
        )

    readonly_fields = ("updated_at",)
    fieldsets = (
        (
            "Basic Information",
            {"fields": ("registry_name", "registry_abbreviation")},
        ),
        (
            "Member Lifecycle",
            {
                "fields": (
                    "inactivity_to_archive_days",
                    "archived_to_deceased_days",
                    "reactivation_window_days",
                ),
                "description": (
                    "Changes apply to the next reconciliation pass. Other workers may keep "
                    "the previous values for up to a minute; no restart is needed."
                ),
            },
        ),
        ("History", {"fields": ("updated_at",)}),
    )
    admin_helper_message = (
        "Site configuration: one record per deployment. Lifecycle thresholds are in days."
    )
