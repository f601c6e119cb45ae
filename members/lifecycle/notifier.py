import logging
from typing import Optional, Protocol

from django.db import DatabaseError, transaction

from .exceptions import NotifyFailure

logger = logging.getLogger(__name__)


class TransitionNotifier(Protocol):
    def notify(
        self,
        member_id: int,
        from_status: str,
        to_status: str,
        kind: str,
        reason: str,
        now,
        actor_id: Optional[int] = None,
    ) -> None: ...


class AuditLogNotifier:
    """
    Records applied transitions in the audit log.

    Called only after the status write has been confirmed. A failure here
    raises NotifyFailure; it never undoes the transition.
    """

    def notify(self, member_id, from_status, to_status, kind, reason, now, actor_id=None):
        from audit.models import LifecycleAuditEntry

        try:
            # Savepoint so a failed insert does not poison an outer transaction
            with transaction.atomic():
                LifecycleAuditEntry.objects.create(
                    member_id=member_id,
                    from_status=from_status,
                    to_status=to_status,
                    kind=kind,
                    reason=reason[:255],
                    actor_id=actor_id,
                    occurred_at=now,
                )
        except DatabaseError as e:
            raise NotifyFailure(
                f"Audit entry for member {member_id} ({from_status} -> {to_status}) "
                f"was not recorded: {e}"
            ) from e


def notify_safely(notifier, transition):
    """
    Deliver `transition` to `notifier`.

    Returns None on success, or a warning message when delivery failed.
    """
    try:
        notifier.notify(
            transition.member_id,
            transition.from_status,
            transition.to_status,
            transition.kind,
            transition.reason,
            transition.changed_at,
            actor_id=transition.actor_id,
        )
    except NotifyFailure as e:
        logger.warning("Lifecycle transition applied but not audited: %s", e)
        return str(e)
    return None
