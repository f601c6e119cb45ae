from django.core.exceptions import ValidationError
from django.db import models

from members.lifecycle.types import ActivityKind


####################################################
# ActivityRecord model
#
# One observed payment or biometric check-in, as reported by the payment desk
# or the scanner. Records are matched to members by registry identifier, not
# by foreign key, because producers only know the number on the member's card
# and may report activity before the member record exists.
#
# occurred_at is stored exactly as the producer sent it. The lifecycle engine
# parses it and ignores values it cannot read.
#
# Records are immutable once saved.
#


class ActivityRecord(models.Model):
    membership_identifier = models.CharField(max_length=50, db_index=True)
    kind = models.CharField(max_length=10, choices=ActivityKind.choices)
    occurred_at = models.CharField(
        max_length=64,
        help_text="Timestamp as reported by the producer (ISO-8601 or epoch milliseconds).",
    )
    source_reference = models.CharField(
        max_length=100,
        blank=True,
        help_text="Producer's identifier for this record (receipt number, scan id).",
    )
    received_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-received_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["kind", "source_reference"],
                condition=~models.Q(source_reference=""),
                name="unique_activity_source_reference",
            )
        ]

    def __str__(self):
        return f"{self.get_kind_display()} for {self.membership_identifier} at {self.occurred_at}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError("Activity records are immutable once recorded.")
        if hasattr(self.occurred_at, "isoformat"):
            self.occurred_at = self.occurred_at.isoformat()
        super().save(*args, **kwargs)
