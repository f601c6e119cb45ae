from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

from members.constants.membership import NAME_SUFFIX_CHOICES
from members.lifecycle.types import LifecycleStatus

#########################
# Member Model

# Extends Django's AbstractUser to represent a registered member.
# Includes personal information, contact details, the registry identifier
# used to correlate payments and check-ins, and the lifecycle fields that the
# reconciliation engine owns.

# Fields:
# - membership_identifier: registry id printed on the member's card; activity
#   records (payments, biometric check-ins) are matched on this value
# - middle_initial / nickname / name_suffix: name details for display
# - phone / address / barangay: contact details
# - member_manager: operator role allowed to run manual lifecycle actions
# - lifecycle_status: Active, Archived or Deceased
# - status_changed_at: when lifecycle_status last changed
# - lifecycle_version: bumped by every lifecycle write; conditional writes
#   are guarded on it
# - archived_by / archive_reason: archival bookkeeping, cleared when the
#   member becomes Active again

# Lifecycle fields are written only through members.lifecycle.stores, never
# through save(), so that every change is conditional and audited.


class Member(AbstractUser):
    membership_identifier = models.CharField(
        max_length=50,
        unique=True,
        blank=True,
        null=True,
        help_text="Registry identifier used to match payments and check-ins to this member.",
    )
    middle_initial = models.CharField(max_length=2, blank=True, null=True)
    nickname = models.CharField(max_length=50, blank=True, null=True)
    name_suffix = models.CharField(
        max_length=10,
        choices=NAME_SUFFIX_CHOICES,
        blank=True,
        null=True,
    )
    phone = models.CharField(max_length=20, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    barangay = models.CharField(max_length=100, blank=True, null=True)
    birth_date = models.DateField(blank=True, null=True)

    member_manager = models.BooleanField(default=False)

    lifecycle_status = models.CharField(
        max_length=10,
        choices=LifecycleStatus.choices,
        default=LifecycleStatus.ACTIVE,
        db_index=True,
    )
    status_changed_at = models.DateTimeField(default=timezone.now)
    lifecycle_version = models.PositiveIntegerField(default=0)
    archived_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Operator who archived this member; empty when archived automatically.",
    )
    archive_reason = models.CharField(max_length=200, blank=True)

    class Meta:
        indexes = [
            models.Index(
                fields=["lifecycle_status", "status_changed_at"],
                name="member_lifecycle_status_idx",
            ),
        ]

    ##################################
    # full_display_name
    #
    # Return the member's display name for UI usage.
    # If a nickname exists, use it in place of the first name.
    # Deceased members are marked with a dagger.
    #
    @property
    def full_display_name(self):
        if self.nickname:
            first = f"{self.nickname}"
        else:
            first = self.first_name

        name = f"{first} {self.middle_initial or ''} {self.last_name}".strip()

        if self.name_suffix:
            name = f"{name}, {self.name_suffix}"
        if self.lifecycle_status == LifecycleStatus.DECEASED:
            name += "†"
        name = " ".join(name.split())  # Normalize spaces
        return name or self.username

    def is_active_member(self):
        return self.lifecycle_status == LifecycleStatus.ACTIVE

    def save(self, *args, **kwargs):
        # Operators need admin access to run lifecycle actions
        if self.is_superuser or self.member_manager:
            self.is_staff = True
        super().save(*args, **kwargs)

    def __str__(self):
        return self.full_display_name
