import json
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from activity.models import ActivityRecord
from audit.models import LifecycleAuditEntry
from members.lifecycle.exceptions import ThresholdsNotConfigured
from members.lifecycle.types import ActivityKind, LifecycleStatus
from members.models import Member
from utils.models import CronJobLock


@pytest.mark.django_db
class TestReconcileLifecycleCommand:
    def test_archives_inactive_members(self, lifecycle_settings, make_member):
        inactive = make_member("OSCA-1")
        active = make_member("OSCA-2")
        ActivityRecord.objects.create(
            membership_identifier="OSCA-2",
            kind=ActivityKind.CHECKIN,
            occurred_at=timezone.now().isoformat(),
        )
        out = StringIO()

        call_command("reconcile_lifecycle", stdout=out)

        inactive.refresh_from_db()
        active.refresh_from_db()
        assert inactive.lifecycle_status == LifecycleStatus.ARCHIVED
        assert active.lifecycle_status == LifecycleStatus.ACTIVE
        assert "Applied 1 lifecycle transition(s)" in out.getvalue()
        assert not CronJobLock.objects.filter(job_name="reconcile_lifecycle").exists()

    def test_dry_run_writes_nothing(self, lifecycle_settings, make_member):
        member = make_member("OSCA-1")
        out = StringIO()

        call_command("reconcile_lifecycle", "--dry-run", stdout=out)

        member.refresh_from_db()
        assert member.lifecycle_status == LifecycleStatus.ACTIVE
        assert member.lifecycle_version == 0
        assert not LifecycleAuditEntry.objects.exists()
        assert "1 would change" in out.getvalue()
        assert f"member {member.pk}: Active -> Archived" in out.getvalue()

    def test_member_option_limits_the_sweep(self, lifecycle_settings, make_member):
        first = make_member("OSCA-1")
        second = make_member("OSCA-2")

        call_command("reconcile_lifecycle", "--member", str(first.pk), stdout=StringIO())

        first.refresh_from_db()
        second.refresh_from_db()
        assert first.lifecycle_status == LifecycleStatus.ARCHIVED
        assert second.lifecycle_status == LifecycleStatus.ACTIVE

    def test_skips_when_another_pod_holds_the_lock(self, lifecycle_settings, make_member):
        member = make_member("OSCA-1")
        CronJobLock.objects.create(
            job_name="reconcile_lifecycle",
            locked_by="other-pod",
            expires_at=timezone.now() + timedelta(minutes=10),
        )
        out = StringIO()

        call_command("reconcile_lifecycle", stdout=out)

        member.refresh_from_db()
        assert member.lifecycle_status == LifecycleStatus.ACTIVE
        assert "already running on other-pod" in out.getvalue()

    def test_fails_without_thresholds(self, make_member):
        make_member("OSCA-1")
        with pytest.raises(ThresholdsNotConfigured):
            call_command("reconcile_lifecycle", stdout=StringIO())
        assert not CronJobLock.objects.exists()


LEGACY_EXPORT = {
    "members": {
        "-Nabc1": {
            "oscaID": "0421",
            "firstName": "Maria",
            "lastName": "Santos",
            "archived": "false",
            "lastFacialRecognition": "2025-05-01T08:00:00Z",
            "date_updated": "2024-02-01T00:00:00Z",
        },
        "-Nabc2": {
            "memberOscaId": "0422",
            "firstName": "Jose",
            "lastName": "Rizal",
            "deceased": "true",
            "archived": True,
        },
        "-Nabc3": {"firstName": "No", "lastName": "Identifier"},
    },
    "payments": {
        "-Npay1": {"oscaID": "0422", "payDate": 1704067200000},
        "-Npay2": {"payDate": "2024-01-01"},
    },
}


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "registry.json"
    path.write_text(json.dumps(LEGACY_EXPORT), encoding="utf-8")
    return str(path)


@pytest.mark.django_db
class TestImportLegacyRegistryCommand:
    def test_imports_members_and_activity(self, export_file):
        out = StringIO()

        call_command("import_legacy_registry", export_file, stdout=out)

        maria = Member.objects.get(membership_identifier="0421")
        jose = Member.objects.get(membership_identifier="0422")
        assert maria.username == "member-0421"
        assert maria.lifecycle_status == LifecycleStatus.ACTIVE
        assert not maria.has_usable_password()
        assert jose.lifecycle_status == LifecycleStatus.DECEASED
        assert ActivityRecord.objects.filter(
            membership_identifier="0421", kind=ActivityKind.CHECKIN
        ).exists()
        assert ActivityRecord.objects.get(source_reference="legacy-payment:-Npay1").occurred_at == (
            "1704067200000"
        )
        assert "Members imported: 2" in out.getvalue()
        assert "skipped: 2" in out.getvalue()

    def test_status_change_time_comes_from_last_update(self, export_file):
        call_command("import_legacy_registry", export_file, stdout=StringIO())
        maria = Member.objects.get(membership_identifier="0421")
        assert maria.status_changed_at.year == 2024

    def test_rerun_is_idempotent(self, export_file):
        call_command("import_legacy_registry", export_file, stdout=StringIO())
        out = StringIO()

        call_command("import_legacy_registry", export_file, stdout=out)

        assert Member.objects.count() == 2
        assert ActivityRecord.objects.count() == 2
        assert "Members imported: 0" in out.getvalue()

    def test_dry_run_saves_nothing(self, export_file):
        out = StringIO()

        call_command("import_legacy_registry", export_file, "--dry-run", stdout=out)

        assert not Member.objects.exists()
        assert not ActivityRecord.objects.exists()
        assert "[DRY RUN] Would import: Maria Santos" in out.getvalue()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CommandError):
            call_command("import_legacy_registry", str(path), stdout=StringIO())

    def test_missing_file(self, tmp_path):
        with pytest.raises(CommandError):
            call_command("import_legacy_registry", str(tmp_path / "nope.json"), stdout=StringIO())
