import logging
from datetime import timedelta

from django.contrib import admin, messages
from django.contrib.admin import SimpleListFilter
from django.contrib.auth.admin import UserAdmin
from django.contrib.auth.forms import UserChangeForm, UserCreationForm
from django.utils import timezone
from reversion.admin import VersionAdmin

from audit.models import LifecycleAuditEntry
from utils.admin_helpers import AdminHelperMixin

from .lifecycle.exceptions import GuardRejected, StoreError, VersionConflict
from .lifecycle.stores import build_gateway
from .lifecycle.types import LifecycleStatus
from .models import Member

logger = logging.getLogger(__name__)


#########################
# Custom filter for stale archived members
#
# Archived members that have been archived for a long time are the ones the
# next reconciliation pass may infer deceased; staff review them first.


class ArchivedSinceFilter(SimpleListFilter):
    title = "archived for"
    parameter_name = "archived_for"

    def lookups(self, request, model_admin):
        return (
            ("over_1y", "More than a year"),
            ("over_2y", "More than two years"),
        )

    def queryset(self, request, queryset):
        years = {"over_1y": 1, "over_2y": 2}.get(self.value())
        if not years:
            return queryset
        cutoff = timezone.now() - timedelta(days=365 * years)
        return queryset.filter(
            lifecycle_status=LifecycleStatus.ARCHIVED, status_changed_at__lt=cutoff
        )


#########################
# Member forms used by MemberAdmin
#
# Lifecycle fields are not part of either form; they change only through the
# lifecycle actions below.


class CustomMemberChangeForm(UserChangeForm):
    class Meta:
        model = Member
        fields = (
            "username",
            "email",
            "first_name",
            "last_name",
            "membership_identifier",
        )


class CustomMemberCreationForm(UserCreationForm):
    class Meta:
        model = Member
        fields = ("username", "membership_identifier", "first_name", "last_name")


class LifecycleAuditInline(admin.TabularInline):
    model = LifecycleAuditEntry
    fk_name = "member"
    extra = 0
    can_delete = False
    fields = ("occurred_at", "from_status", "to_status", "kind", "actor", "reason")
    readonly_fields = fields
    ordering = ("-occurred_at",)

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


#########################
# MemberAdmin Class

# Extends VersionAdmin (from django-reversion) and UserAdmin so every profile
# edit is versioned. Lifecycle status is read-only here; operators change it
# with the archive / unarchive / mark deceased / restore actions, which go
# through the manual override gateway and its guards.


@admin.register(Member)
class MemberAdmin(AdminHelperMixin, VersionAdmin, UserAdmin):
    add_form = CustomMemberCreationForm
    form = CustomMemberChangeForm
    inlines = [LifecycleAuditInline]
    actions = ["archive_members", "unarchive_members", "mark_members_deceased", "restore_members"]

    list_display = (
        "last_name",
        "first_name",
        "membership_identifier",
        "lifecycle_status",
        "status_changed_at",
    )
    search_fields = ("first_name", "last_name", "username", "membership_identifier")
    list_filter = ("lifecycle_status", ArchivedSinceFilter, "member_manager")
    readonly_fields = (
        "lifecycle_status",
        "status_changed_at",
        "archived_by",
        "archive_reason",
        "last_login",
        "date_joined",
    )

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (
            "Personal Info",
            {
                "fields": (
                    "first_name",
                    "middle_initial",
                    "last_name",
                    "name_suffix",
                    "nickname",
                    "birth_date",
                    "email",
                    "phone",
                    "address",
                    "barangay",
                )
            },
        ),
        (
            "Membership",
            {
                "fields": (
                    "membership_identifier",
                    "lifecycle_status",
                    "status_changed_at",
                    "archived_by",
                    "archive_reason",
                    "member_manager",
                )
            },
        ),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                )
            },
        ),
        ("Important Dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "username",
                    "membership_identifier",
                    "first_name",
                    "last_name",
                    "password1",
                    "password2",
                ),
            },
        ),
    )

    admin_helper_message = (
        "Members: lifecycle status changes only through the actions menu. "
        "Members are never deleted by reconciliation; archive them instead."
    )

    def _run_lifecycle_action(self, request, queryset, operation, verb):
        gateway = build_gateway()
        changed = unchanged = 0
        for member in queryset:
            try:
                result = getattr(gateway, operation)(member.pk, actor=request.user)
            except GuardRejected as e:
                self.message_user(request, f"{member}: {e.reason}", messages.WARNING)
                continue
            except VersionConflict:
                self.message_user(
                    request,
                    f"{member} was changed by someone else; reload and try again.",
                    messages.WARNING,
                )
                continue
            except StoreError as e:
                logger.exception("%s failed for member %s", operation, member.pk)
                self.message_user(request, f"{member}: {e}", messages.ERROR)
                continue
            if result.changed:
                changed += 1
            else:
                unchanged += 1
            for warning in result.warnings:
                self.message_user(request, warning, messages.WARNING)

        summary = f"{verb} {changed} member(s)."
        if unchanged:
            summary += f" {unchanged} already in that state."
        self.message_user(request, summary, messages.SUCCESS if changed else messages.INFO)

    @admin.action(description="Archive selected members")
    def archive_members(self, request, queryset):
        self._run_lifecycle_action(request, queryset, "archive", "Archived")

    @admin.action(description="Unarchive selected members (dues must be settled)")
    def unarchive_members(self, request, queryset):
        self._run_lifecycle_action(request, queryset, "unarchive", "Unarchived")

    @admin.action(description="Mark selected members deceased")
    def mark_members_deceased(self, request, queryset):
        self._run_lifecycle_action(request, queryset, "mark_deceased", "Marked deceased")

    @admin.action(description="Restore selected deceased members")
    def restore_members(self, request, queryset):
        self._run_lifecycle_action(request, queryset, "restore", "Restored")
