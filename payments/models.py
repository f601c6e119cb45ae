from django.conf import settings
from django.db import models, transaction
from django.utils import timezone

from members.lifecycle.types import ActivityKind

####################################################
# MembershipDue model
#
# A membership fee a member owes for a period. A member with an unsettled due
# that has fallen due cannot be unarchived.
#
# Fields:
# - member: who owes the fee
# - period: label of the period covered (e.g. "2025")
# - amount: fee amount
# - due_on: when the fee falls due
# - settled_at: when it was paid; empty while outstanding
# - payment_reference: receipt number recorded at the payment desk
#
# Methods:
# - settle(): marks the due paid and records the payment as member activity
#


class MembershipDue(models.Model):
    member = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="membership_dues",
    )
    period = models.CharField(max_length=20)
    amount = models.DecimalField(max_digits=8, decimal_places=2)
    due_on = models.DateField()
    settled_at = models.DateTimeField(blank=True, null=True)
    payment_reference = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["-due_on"]
        unique_together = ("member", "period")
        indexes = [
            models.Index(fields=["member", "settled_at"], name="due_member_settled_idx")
        ]

    def __str__(self):
        state = "settled" if self.is_settled else "outstanding"
        return f"{self.member} - {self.period} ({state})"

    @property
    def is_settled(self):
        return self.settled_at is not None

    def settle(self, when=None, reference=""):
        """
        Mark this due as paid and record a payment activity for the member.

        Settling an already settled due changes nothing.
        """
        from activity.models import ActivityRecord

        if self.is_settled:
            return False
        when = when or timezone.now()
        with transaction.atomic():
            self.settled_at = when
            if reference:
                self.payment_reference = reference
            self.save(update_fields=["settled_at", "payment_reference"])
            if self.member.membership_identifier:
                ActivityRecord.objects.create(
                    membership_identifier=self.member.membership_identifier,
                    kind=ActivityKind.PAYMENT,
                    occurred_at=when.isoformat(),
                    source_reference=f"due:{self.pk}",
                )
        return True


def has_settled_membership_obligation(member_id, today=None):
    """True when the member owes nothing that has already fallen due."""
    today = today or timezone.localdate()
    return not MembershipDue.objects.filter(
        member_id=member_id, settled_at__isnull=True, due_on__lte=today
    ).exists()
