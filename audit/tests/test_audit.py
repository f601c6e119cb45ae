from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.urls import reverse

from audit.models import LifecycleAuditEntry
from members.lifecycle.exceptions import NotifyFailure
from members.lifecycle.notifier import AuditLogNotifier, notify_safely
from members.lifecycle.types import LifecycleStatus, Transition, TransitionKind


@pytest.fixture
def transition(make_member, now):
    member = make_member("OSCA-1")
    return Transition(
        member_id=member.pk,
        from_status=LifecycleStatus.ACTIVE,
        to_status=LifecycleStatus.ARCHIVED,
        kind=TransitionKind.AUTOMATIC,
        reason="Inactive for 400 days",
        changed_at=now,
    )


@pytest.mark.django_db
class TestAuditLogNotifier:
    def test_records_entry(self, transition):
        assert notify_safely(AuditLogNotifier(), transition) is None

        entry = LifecycleAuditEntry.objects.get()
        assert entry.member_id == transition.member_id
        assert entry.to_status == LifecycleStatus.ARCHIVED
        assert entry.reason == "Inactive for 400 days"
        assert str(entry).endswith("Active -> Archived (automatic)")

    def test_database_failure_becomes_notify_failure(self, transition):
        with patch.object(
            LifecycleAuditEntry.objects, "create", side_effect=DatabaseError("disk full")
        ):
            with pytest.raises(NotifyFailure):
                AuditLogNotifier().notify(
                    transition.member_id,
                    transition.from_status,
                    transition.to_status,
                    transition.kind,
                    transition.reason,
                    transition.changed_at,
                )

    def test_notify_safely_turns_failure_into_warning(self, transition):
        with patch.object(
            LifecycleAuditEntry.objects, "create", side_effect=DatabaseError("disk full")
        ):
            warning = notify_safely(AuditLogNotifier(), transition)
        assert "was not recorded" in warning
        assert not LifecycleAuditEntry.objects.exists()

    def test_long_reasons_are_truncated(self, transition, now):
        AuditLogNotifier().notify(
            transition.member_id,
            transition.from_status,
            transition.to_status,
            TransitionKind.MANUAL,
            "x" * 400,
            now,
        )
        assert len(LifecycleAuditEntry.objects.get().reason) == 255


@pytest.mark.django_db
def test_audit_admin_is_read_only(client, operator, transition):
    notify_safely(AuditLogNotifier(), transition)
    client.force_login(operator)

    resp = client.get(reverse("admin:audit_lifecycleauditentry_changelist"))

    assert resp.status_code == 200
    assert "Inactive for 400 days" in resp.content.decode()
    add = client.get(reverse("admin:audit_lifecycleauditentry_add"))
    assert add.status_code == 403
