"""
Signals protecting member lifecycle fields.

Lifecycle fields are written by conditional UPDATEs that bypass the model
instance. An instance loaded before such a write still carries the old values,
and saving it (an admin edit, a profile update) would silently undo the
transition. Before every save of an existing member the stored lifecycle
values are copied back onto the instance.
"""

import logging

from django.db.models.signals import pre_save
from django.dispatch import receiver

from .models import Member

logger = logging.getLogger(__name__)

LIFECYCLE_FIELDS = (
    "lifecycle_status",
    "status_changed_at",
    "lifecycle_version",
    "archived_by_id",
    "archive_reason",
)


@receiver(pre_save, sender=Member)
def preserve_lifecycle_fields(sender, instance, raw=False, **kwargs):
    if raw or instance.pk is None:
        return
    stored = sender.objects.filter(pk=instance.pk).values(*LIFECYCLE_FIELDS).first()
    if stored is None:
        return
    for field, value in stored.items():
        if getattr(instance, field) != value:
            logger.debug(
                "preserve_lifecycle_fields: keeping stored %s=%r for member %s (instance had %r)",
                field,
                value,
                instance.pk,
                getattr(instance, field),
            )
            setattr(instance, field, value)
