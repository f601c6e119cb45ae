from django.contrib import admin

from utils.admin_helpers import AdminHelperMixin

from .models import LifecycleAuditEntry


@admin.register(LifecycleAuditEntry)
class LifecycleAuditEntryAdmin(AdminHelperMixin, admin.ModelAdmin):
    list_display = ("member", "from_status", "to_status", "kind", "actor", "reason_short", "occurred_at")
    list_filter = ("kind", "to_status")
    search_fields = ("member__username", "member__membership_identifier", "reason")
    list_select_related = ("member", "actor")
    list_per_page = 50
    date_hierarchy = "occurred_at"

    def reason_short(self, obj):
        return (obj.reason[:100] + "...") if obj.reason and len(obj.reason) > 100 else obj.reason

    reason_short.short_description = "Reason"

    admin_helper_message = (
        "Lifecycle audit: every status change applied to a member. "
        "Filter by kind to separate operator actions from automatic reconciliation."
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
