from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from audit.models import LifecycleAuditEntry
from members.lifecycle.exceptions import (
    GuardRejected,
    MemberNotFound,
    NotifyFailure,
    VersionConflict,
)
from members.lifecycle.gateway import ManualOverrideGateway
from members.lifecycle.notifier import AuditLogNotifier
from members.lifecycle.stores import DjangoMemberStore, DuesPaymentsCollaborator, build_gateway
from members.lifecycle.types import LifecycleStatus, TransitionKind
from payments.models import MembershipDue


class FailingNotifier:
    def notify(self, *args, **kwargs):
        raise NotifyFailure("audit log unavailable")


@pytest.fixture
def gateway(now):
    return ManualOverrideGateway(
        DjangoMemberStore(), DuesPaymentsCollaborator(), AuditLogNotifier(), clock=lambda: now
    )


def outstanding_due(member, due_on=None):
    return MembershipDue.objects.create(
        member=member,
        period="2025",
        amount=Decimal("100.00"),
        due_on=due_on or date(2025, 1, 1),
    )


@pytest.mark.django_db
class TestArchive:
    def test_archive_active_member_with_recent_activity(self, gateway, make_member, operator, now):
        member = make_member("OSCA-1", changed_at=now - timedelta(days=5))

        result = gateway.archive(member.pk, actor=operator, reason="Requested by family")

        member.refresh_from_db()
        assert result.changed
        assert member.lifecycle_status == LifecycleStatus.ARCHIVED
        assert member.status_changed_at == now
        assert member.archived_by == operator
        assert member.archive_reason == "Requested by family"

        entry = LifecycleAuditEntry.objects.get(member=member)
        assert entry.kind == TransitionKind.MANUAL
        assert entry.actor == operator
        assert entry.reason == "Requested by family"

    def test_archive_default_reason(self, gateway, make_member, operator):
        member = make_member("OSCA-1")
        gateway.archive(member.pk, actor=operator)
        member.refresh_from_db()
        assert member.archive_reason == "Manual archive"

    def test_archive_deceased_is_rejected(self, gateway, make_member, operator):
        member = make_member("OSCA-1", status=LifecycleStatus.DECEASED)

        with pytest.raises(GuardRejected):
            gateway.archive(member.pk, actor=operator)

        member.refresh_from_db()
        assert member.lifecycle_status == LifecycleStatus.DECEASED
        assert member.lifecycle_version == 0
        assert not LifecycleAuditEntry.objects.exists()

    def test_archive_already_archived_keeps_archival_date(self, gateway, make_member, operator, now):
        archived_at = now - timedelta(days=300)
        member = make_member("OSCA-1", status=LifecycleStatus.ARCHIVED, changed_at=archived_at)

        result = gateway.archive(member.pk, actor=operator)

        member.refresh_from_db()
        assert not result.changed
        assert member.status_changed_at == archived_at
        assert member.lifecycle_version == 0

    def test_archive_missing_member(self, gateway, operator):
        with pytest.raises(MemberNotFound):
            gateway.archive(424242, actor=operator)

    def test_audit_failure_keeps_manual_transition(self, make_member, operator, now):
        member = make_member("OSCA-1")
        gateway = ManualOverrideGateway(
            DjangoMemberStore(), DuesPaymentsCollaborator(), FailingNotifier(), clock=lambda: now
        )

        result = gateway.archive(member.pk, actor=operator)

        member.refresh_from_db()
        assert result.changed
        assert result.warnings == ["audit log unavailable"]
        assert member.lifecycle_status == LifecycleStatus.ARCHIVED
        assert member.lifecycle_version == 1
        assert not LifecycleAuditEntry.objects.exists()


@pytest.mark.django_db
class TestUnarchive:
    def test_unarchive_with_outstanding_due_is_rejected(self, gateway, make_member, operator):
        member = make_member("OSCA-1", status=LifecycleStatus.ARCHIVED)
        outstanding_due(member)

        with pytest.raises(GuardRejected) as excinfo:
            gateway.unarchive(member.pk, actor=operator)

        assert "outstanding membership fee" in excinfo.value.reason
        member.refresh_from_db()
        assert member.lifecycle_status == LifecycleStatus.ARCHIVED
        assert member.lifecycle_version == 0
        assert not LifecycleAuditEntry.objects.exists()

    def test_unarchive_after_settling(self, gateway, make_member, operator, now):
        member = make_member(
            "OSCA-1",
            status=LifecycleStatus.ARCHIVED,
            archived_by=operator,
            archive_reason="Manual archive",
        )
        due = outstanding_due(member)
        due.settle(when=now - timedelta(days=1), reference="OR-1001")

        result = gateway.unarchive(member.pk, actor=operator)

        member.refresh_from_db()
        assert result.changed
        assert member.lifecycle_status == LifecycleStatus.ACTIVE
        assert member.archived_by is None
        assert member.archive_reason == ""

    def test_dues_not_yet_due_do_not_block(self, gateway, make_member, operator):
        member = make_member("OSCA-1", status=LifecycleStatus.ARCHIVED)
        outstanding_due(member, due_on=date.today() + timedelta(days=30))

        assert gateway.unarchive(member.pk, actor=operator).changed

    def test_unarchive_requires_archived(self, gateway, make_member, operator):
        member = make_member("OSCA-1")
        with pytest.raises(GuardRejected):
            gateway.unarchive(member.pk, actor=operator)


@pytest.mark.django_db
class TestDeceased:
    def test_mark_deceased(self, gateway, make_member, operator):
        member = make_member("OSCA-1")

        result = gateway.mark_deceased(member.pk, actor=operator, reason="Death certificate received")

        member.refresh_from_db()
        assert result.transition.to_status == LifecycleStatus.DECEASED
        assert member.lifecycle_status == LifecycleStatus.DECEASED

    def test_mark_deceased_twice_is_a_no_op(self, gateway, make_member, operator):
        member = make_member("OSCA-1", status=LifecycleStatus.DECEASED)
        assert not gateway.mark_deceased(member.pk, actor=operator).changed
        assert not LifecycleAuditEntry.objects.exists()

    def test_restore_is_the_way_out_of_deceased(self, gateway, make_member, operator):
        member = make_member("OSCA-1", status=LifecycleStatus.DECEASED)

        result = gateway.restore(member.pk, actor=operator)

        member.refresh_from_db()
        assert member.lifecycle_status == LifecycleStatus.ACTIVE
        assert result.transition.reason == "Restored from deceased"
        assert LifecycleAuditEntry.objects.get(member=member).from_status == LifecycleStatus.DECEASED

    def test_restore_requires_deceased(self, gateway, make_member, operator):
        member = make_member("OSCA-1", status=LifecycleStatus.ARCHIVED)
        with pytest.raises(GuardRejected):
            gateway.restore(member.pk, actor=operator)


@pytest.mark.django_db
def test_concurrent_change_surfaces_as_version_conflict(gateway, make_member, operator, now):
    member = make_member("OSCA-1")
    store = DjangoMemberStore()
    stale = store.read_member(member.pk)
    store.conditional_write_status(member.pk, 0, LifecycleStatus.ARCHIVED, now)

    with patch.object(DjangoMemberStore, "read_member", return_value=stale):
        with pytest.raises(VersionConflict):
            gateway.mark_deceased(member.pk, actor=operator)

    member.refresh_from_db()
    assert member.lifecycle_status == LifecycleStatus.ARCHIVED
    assert not LifecycleAuditEntry.objects.exists()


@pytest.mark.django_db
def test_actor_may_be_given_as_id(make_member, operator):
    member = make_member("OSCA-1")
    build_gateway().archive(member.pk, actor=operator.pk)
    member.refresh_from_db()
    assert member.archived_by_id == operator.pk
