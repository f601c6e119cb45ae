"""
Manual lifecycle overrides.

Operator actions bypass the automatic policy but not the guards: each action
checks its precondition against a fresh read, then writes conditionally on
the version it read. A write that loses a race raises VersionConflict so the
operator can look again instead of acting on stale data.
"""

import logging

from django.utils import timezone

from .exceptions import GuardRejected
from .notifier import notify_safely
from .types import LifecycleStatus, OverrideResult, Transition, TransitionKind

logger = logging.getLogger(__name__)


class ManualOverrideGateway:
    """
    Args:
        store: member store (read_member, conditional_write_status).
        payments: collaborator answering has_settled_membership_obligation().
        notifier: TransitionNotifier receiving each applied transition.
        clock: callable returning the current time.
    """

    def __init__(self, store, payments, notifier, clock=timezone.now):
        self.store = store
        self.payments = payments
        self.notifier = notifier
        self.clock = clock

    def archive(self, member_id, actor=None, reason=""):
        """Archive a member regardless of recent activity. Not allowed for Deceased."""
        member = self.store.read_member(member_id)
        if member.lifecycle_status == LifecycleStatus.DECEASED:
            raise GuardRejected(
                member_id, "Deceased members cannot be archived; restore them first."
            )
        if member.lifecycle_status == LifecycleStatus.ARCHIVED:
            return OverrideResult()
        return self._apply(
            member,
            LifecycleStatus.ARCHIVED,
            actor,
            reason or "Manual archive",
        )

    def unarchive(self, member_id, actor=None, reason=""):
        """Return an Archived member to Active once their membership dues are settled."""
        member = self.store.read_member(member_id)
        if member.lifecycle_status != LifecycleStatus.ARCHIVED:
            raise GuardRejected(
                member_id,
                f"Only archived members can be unarchived; this member is {member.lifecycle_status}.",
            )
        if not self.payments.has_settled_membership_obligation(member_id):
            raise GuardRejected(
                member_id,
                "Member has an outstanding membership fee; record the payment before unarchiving.",
            )
        return self._apply(
            member, LifecycleStatus.ACTIVE, actor, reason or "Manual unarchive"
        )

    def mark_deceased(self, member_id, actor=None, reason=""):
        member = self.store.read_member(member_id)
        if member.lifecycle_status == LifecycleStatus.DECEASED:
            return OverrideResult()
        return self._apply(
            member, LifecycleStatus.DECEASED, actor, reason or "Marked deceased"
        )

    def restore(self, member_id, actor=None, reason=""):
        """The only way out of Deceased. Clears archival bookkeeping."""
        member = self.store.read_member(member_id)
        if member.lifecycle_status != LifecycleStatus.DECEASED:
            raise GuardRejected(
                member_id,
                f"Only deceased members can be restored; this member is {member.lifecycle_status}.",
            )
        return self._apply(
            member, LifecycleStatus.ACTIVE, actor, reason or "Restored from deceased"
        )

    def _apply(self, member, target, actor, reason):
        now = self.clock()
        actor_id = getattr(actor, "pk", actor)
        archiving = target == LifecycleStatus.ARCHIVED
        self.store.conditional_write_status(
            member.member_id,
            member.version,
            target,
            now,
            archived_by_id=actor_id if archiving else None,
            archive_reason=reason if archiving else "",
        )
        transition = Transition(
            member_id=member.member_id,
            from_status=member.lifecycle_status,
            to_status=target,
            kind=TransitionKind.MANUAL,
            reason=reason,
            changed_at=now,
            actor_id=actor_id,
        )
        logger.info(
            "Member %s %s -> %s by operator %s (%s)",
            member.member_id,
            transition.from_status,
            target,
            actor_id,
            reason,
        )
        result = OverrideResult(transition=transition)
        warning = notify_safely(self.notifier, transition)
        if warning:
            result.warnings.append(warning)
        return result
