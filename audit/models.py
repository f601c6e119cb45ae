from django.conf import settings
from django.db import models
from django.utils import timezone

from members.lifecycle.types import LifecycleStatus, TransitionKind


class LifecycleAuditEntry(models.Model):
    """One applied lifecycle transition, automatic or by an operator."""

    member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="lifecycle_audit_entries",
    )
    from_status = models.CharField(max_length=10, choices=LifecycleStatus.choices)
    to_status = models.CharField(max_length=10, choices=LifecycleStatus.choices)
    kind = models.CharField(max_length=10, choices=TransitionKind.choices)
    reason = models.CharField(max_length=255, blank=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    occurred_at = models.DateTimeField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-occurred_at", "-pk"]
        verbose_name = "Lifecycle audit entry"
        verbose_name_plural = "Lifecycle audit entries"
        indexes = [
            models.Index(fields=["member", "-occurred_at"], name="audit_member_occurred_idx")
        ]

    def __str__(self):
        return f"{self.member}: {self.from_status} -> {self.to_status} ({self.kind})"
