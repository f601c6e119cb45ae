from django.contrib import admin, messages

from utils.admin_helpers import AdminHelperMixin

from .models import MembershipDue


@admin.register(MembershipDue)
class MembershipDueAdmin(AdminHelperMixin, admin.ModelAdmin):
    list_display = ("member", "period", "amount", "due_on", "settled_at")
    list_filter = ("period",)
    search_fields = ("member__membership_identifier", "member__last_name")
    readonly_fields = ("settled_at",)
    actions = ["settle_dues"]
    admin_helper_message = (
        "Membership fees per period. Settling a due records a payment for the member, "
        "which can reactivate an archived member."
    )

    @admin.action(description="Mark selected dues as paid")
    def settle_dues(self, request, queryset):
        settled = sum(1 for due in queryset.select_related("member") if due.settle())
        self.message_user(request, f"Settled {settled} due(s).", messages.SUCCESS)
