"""
Automatic lifecycle reconciliation.

The runner is stateless and is invoked by whoever observes new data: the
activity signal for a single member, or the reconcile_lifecycle command for a
full sweep. Several passes may run at once. Each write is conditional on the
version the pass read, so a pass that lost a race simply drops its write; the
winner has already moved the member and the loser's decision is stale.
"""

import logging

from django.utils import timezone

from .aggregator import index_activity, last_activity
from .exceptions import MemberNotFound, VersionConflict
from .notifier import notify_safely
from .policy import describe_reason, evaluate
from .types import LifecycleStatus, ReconcileReport, Transition, TransitionKind

logger = logging.getLogger(__name__)


def plan_transitions(members, activity_records, now, thresholds):
    """
    Return (member_id, from_status, to_status) for every member whose target
    status differs from its stored status. Members already at their target
    produce nothing.
    """
    return [
        (member.member_id, member.lifecycle_status, target)
        for member, target, _ in _evaluate_members(
            members, activity_records, now, thresholds
        )
    ]


def _evaluate_members(members, activity_records, now, thresholds):
    by_identifier = index_activity(activity_records)
    for member in members:
        latest = last_activity(
            member.membership_identifier,
            by_identifier.get(member.membership_identifier, ()),
        )
        target = evaluate(
            member.lifecycle_status,
            latest,
            now,
            thresholds,
            status_changed_at=member.status_changed_at,
            manual_flag=member.manual_flag,
        )
        if target != member.lifecycle_status:
            yield member, target, latest


class ReconciliationRunner:
    """
    Applies the lifecycle policy to members and persists the differences.

    Args:
        store: member store (read_member, iter_members, find_by_identifier,
            conditional_write_status).
        feed: activity feed (list_activity, list_activity_for).
        notifier: TransitionNotifier receiving each applied transition.
        thresholds: fixed Thresholds; when omitted they are looked up from
            configuration on every pass.
    """

    def __init__(self, store, feed, notifier, thresholds=None):
        self.store = store
        self.feed = feed
        self.notifier = notifier
        self._thresholds = thresholds

    def get_thresholds(self):
        if self._thresholds is not None:
            return self._thresholds
        from siteconfig.utils import get_lifecycle_thresholds

        return get_lifecycle_thresholds()

    def reconcile(self, members, activity_records, now=None):
        """
        Reconcile `members` against `activity_records`.

        Members changed or deleted since they were read are skipped and listed
        in report.conflicts. Any other StoreError propagates immediately;
        transitions applied before it are kept and already notified.
        """
        now = now or timezone.now()
        thresholds = self.get_thresholds()
        report = ReconcileReport()

        for member, target, latest in _evaluate_members(
            members, activity_records, now, thresholds
        ):
            reason = describe_reason(
                member.lifecycle_status, target, latest, now, member.manual_flag
            )
            try:
                self.store.conditional_write_status(
                    member.member_id,
                    member.version,
                    target,
                    now,
                    archive_reason=reason if target == LifecycleStatus.ARCHIVED else "",
                )
            except VersionConflict:
                logger.debug(
                    "Dropped %s -> %s for member %s: record changed since read",
                    member.lifecycle_status,
                    target,
                    member.member_id,
                )
                report.conflicts.append(member.member_id)
                continue
            except MemberNotFound:
                logger.debug(
                    "Dropped %s -> %s for member %s: record deleted since read",
                    member.lifecycle_status,
                    target,
                    member.member_id,
                )
                report.conflicts.append(member.member_id)
                continue

            transition = Transition(
                member_id=member.member_id,
                from_status=member.lifecycle_status,
                to_status=target,
                kind=TransitionKind.AUTOMATIC,
                reason=reason,
                changed_at=now,
            )
            report.applied.append(transition)
            logger.info(
                "Member %s %s -> %s (%s)",
                member.member_id,
                transition.from_status,
                transition.to_status,
                reason,
            )
            warning = notify_safely(self.notifier, transition)
            if warning:
                report.warnings.append(warning)

        return report

    def reconcile_members(self, member_ids=None, now=None):
        """Load members (all when member_ids is None) and their activity, then reconcile."""
        members = list(self.store.iter_members(member_ids))
        identifiers = [m.membership_identifier for m in members if m.membership_identifier]
        records = self.feed.list_activity_for(identifiers)
        return self.reconcile(members, records, now=now)

    def reconcile_identifier(self, membership_identifier, now=None):
        """Push path: reconcile the member a new activity record belongs to."""
        member = self.store.find_by_identifier(membership_identifier)
        if member is None:
            logger.debug("No member with identifier %s; nothing to reconcile", membership_identifier)
            return ReconcileReport()
        records = self.feed.list_activity(membership_identifier)
        return self.reconcile([member], records, now=now)
