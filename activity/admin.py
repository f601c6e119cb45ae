from django.contrib import admin

from utils.admin_helpers import AdminHelperMixin

from .models import ActivityRecord


@admin.register(ActivityRecord)
class ActivityRecordAdmin(AdminHelperMixin, admin.ModelAdmin):
    list_display = ("membership_identifier", "kind", "occurred_at", "received_at")
    list_filter = ("kind",)
    search_fields = ("membership_identifier", "source_reference")
    readonly_fields = ("received_at",)
    admin_helper_message = (
        "Payments and check-ins as reported by the payment desk and the scanner. "
        "Records cannot be edited once saved; add a new record instead."
    )

    def has_change_permission(self, request, obj=None):
        return obj is None and super().has_change_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        return False
