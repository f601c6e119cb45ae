"""
Django-backed collaborators for the lifecycle engine.

The conditional write is the serialization point between the runner and the
gateway: a single UPDATE filtered on (pk, lifecycle_version). Whoever commits
first bumps the version; everyone holding the old version gets
VersionConflict.
"""

import logging

from django.db import DatabaseError
from django.db.models import F

from .exceptions import MemberNotFound, StoreError, VersionConflict
from .gateway import ManualOverrideGateway
from .notifier import AuditLogNotifier
from .runner import ReconciliationRunner
from .types import Activity, LifecycleStatus, MemberSnapshot

logger = logging.getLogger(__name__)

ACTIVITY_BATCH_SIZE = 500

SNAPSHOT_FIELDS = (
    "pk",
    "membership_identifier",
    "lifecycle_status",
    "status_changed_at",
    "lifecycle_version",
)


def _snapshot(row):
    pk, identifier, status, changed_at, version = row
    return MemberSnapshot(
        member_id=pk,
        membership_identifier=identifier,
        lifecycle_status=status,
        status_changed_at=changed_at,
        version=version,
    )


class DjangoMemberStore:
    def _members(self):
        from members.models import Member

        return Member.objects

    def read_member(self, member_id):
        try:
            row = (
                self._members()
                .filter(pk=member_id)
                .values_list(*SNAPSHOT_FIELDS)
                .first()
            )
        except DatabaseError as e:
            raise StoreError(f"Could not read member {member_id}: {e}") from e
        if row is None:
            raise MemberNotFound(member_id)
        return _snapshot(row)

    def iter_members(self, member_ids=None):
        qs = self._members().order_by("pk")
        if member_ids is not None:
            qs = qs.filter(pk__in=list(member_ids))
        try:
            rows = list(qs.values_list(*SNAPSHOT_FIELDS))
        except DatabaseError as e:
            raise StoreError(f"Could not list members: {e}") from e
        return [_snapshot(row) for row in rows]

    def find_by_identifier(self, membership_identifier):
        try:
            row = (
                self._members()
                .filter(membership_identifier=membership_identifier)
                .values_list(*SNAPSHOT_FIELDS)
                .first()
            )
        except DatabaseError as e:
            raise StoreError(
                f"Could not look up member {membership_identifier}: {e}"
            ) from e
        return _snapshot(row) if row else None

    def conditional_write_status(
        self,
        member_id,
        expected_version,
        new_status,
        new_status_changed_at,
        archived_by_id=None,
        archive_reason="",
    ):
        """
        Write the lifecycle fields if the member is still at `expected_version`.

        Becoming Archived records the archival bookkeeping; becoming Active
        clears it; becoming Deceased leaves it as it was.

        Raises:
            VersionConflict: the member changed since `expected_version`.
            MemberNotFound: the member no longer exists.
            StoreError: the database failed.
        """
        updates = {
            "lifecycle_status": new_status,
            "status_changed_at": new_status_changed_at,
            "lifecycle_version": F("lifecycle_version") + 1,
        }
        if new_status == LifecycleStatus.ARCHIVED:
            updates["archived_by_id"] = archived_by_id
            updates["archive_reason"] = archive_reason[:200]
        elif new_status == LifecycleStatus.ACTIVE:
            updates["archived_by_id"] = None
            updates["archive_reason"] = ""

        members = self._members()
        try:
            updated = members.filter(
                pk=member_id, lifecycle_version=expected_version
            ).update(**updates)
            if updated:
                return
            exists = members.filter(pk=member_id).exists()
        except DatabaseError as e:
            raise StoreError(f"Could not write member {member_id}: {e}") from e

        if not exists:
            raise MemberNotFound(member_id)
        raise VersionConflict(member_id, expected_version)


class DjangoActivityFeed:
    def _records(self):
        from activity.models import ActivityRecord

        return ActivityRecord.objects

    def _to_activity(self, rows):
        return [
            Activity(membership_identifier=identifier, kind=kind, occurred_at=occurred_at)
            for identifier, kind, occurred_at in rows
        ]

    def list_activity(self, membership_identifier, since=None):
        """
        Activity for one identifier. `since` filters on when records were
        received, since producer timestamps are not comparable in the database.
        """
        qs = self._records().filter(membership_identifier=membership_identifier)
        if since is not None:
            qs = qs.filter(received_at__gte=since)
        try:
            rows = list(qs.values_list("membership_identifier", "kind", "occurred_at"))
        except DatabaseError as e:
            raise StoreError(f"Could not read activity for {membership_identifier}: {e}") from e
        return self._to_activity(rows)

    def list_activity_for(self, identifiers):
        identifiers = list(identifiers)
        rows = []
        # Chunked to stay under the database's bound-parameter limit
        for start in range(0, len(identifiers), ACTIVITY_BATCH_SIZE):
            chunk = identifiers[start : start + ACTIVITY_BATCH_SIZE]
            try:
                rows.extend(
                    self._records()
                    .filter(membership_identifier__in=chunk)
                    .values_list("membership_identifier", "kind", "occurred_at")
                )
            except DatabaseError as e:
                raise StoreError(f"Could not read activity: {e}") from e
        return self._to_activity(rows)


class DuesPaymentsCollaborator:
    def has_settled_membership_obligation(self, member_id):
        from payments.models import has_settled_membership_obligation

        try:
            return has_settled_membership_obligation(member_id)
        except DatabaseError as e:
            raise StoreError(f"Could not read dues for member {member_id}: {e}") from e


def build_runner(thresholds=None):
    return ReconciliationRunner(
        DjangoMemberStore(), DjangoActivityFeed(), AuditLogNotifier(), thresholds=thresholds
    )


def build_gateway():
    return ManualOverrideGateway(
        DjangoMemberStore(), DuesPaymentsCollaborator(), AuditLogNotifier()
    )

