"""
Push-triggered reconciliation.

When a payment or check-in is recorded, the member it belongs to is
reconciled once the surrounding transaction commits. Only that member is
evaluated; full sweeps belong to the reconcile_lifecycle command.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from members.lifecycle.exceptions import LifecycleError
from members.lifecycle.stores import build_runner

from .models import ActivityRecord

logger = logging.getLogger(__name__)


def reconcile_after_activity(membership_identifier):
    try:
        report = build_runner().reconcile_identifier(membership_identifier)
    except LifecycleError:
        # Don't raise in signals; the next sweep picks the member up again
        logger.exception(
            "reconcile_after_activity: reconciliation failed for %s",
            membership_identifier,
        )
        return None
    for warning in report.warnings:
        logger.warning("reconcile_after_activity: %s", warning)
    return report


@receiver(post_save, sender=ActivityRecord)
def reconcile_member_on_activity(sender, instance, created, **kwargs):
    if not created or kwargs.get("raw"):
        return
    if not getattr(settings, "LIFECYCLE_RECONCILE_ON_ACTIVITY", True):
        return
    identifier = instance.membership_identifier
    transaction.on_commit(lambda: reconcile_after_activity(identifier))
