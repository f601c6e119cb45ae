from datetime import timedelta

from django.utils import timezone

from members.lifecycle.runner import plan_transitions
from members.lifecycle.stores import build_runner
from utils.management.commands.base_cronjob import BaseCronJobCommand


class Command(BaseCronJobCommand):
    help = (
        "Reconcile member lifecycle status (Active/Archived/Deceased) against "
        "payments and check-ins. Only members whose status should change are written."
    )
    job_name = "reconcile_lifecycle"
    max_execution_time = timedelta(minutes=30)

    def add_arguments(self, parser):
        super().add_arguments(parser)
        parser.add_argument(
            "--member",
            type=int,
            action="append",
            dest="member_ids",
            help="Reconcile only this member id (repeatable). Default: every member.",
        )

    def execute_job(self, *args, **options):
        runner = build_runner()
        member_ids = options.get("member_ids")
        now = timezone.now()

        if options.get("dry_run"):
            members = runner.store.iter_members(member_ids)
            identifiers = [m.membership_identifier for m in members if m.membership_identifier]
            records = runner.feed.list_activity_for(identifiers)
            planned = plan_transitions(members, records, now, runner.get_thresholds())
            self.log_info(f"Checked {len(members)} member(s); {len(planned)} would change")
            for member_id, from_status, to_status in planned:
                self.stdout.write(f"  member {member_id}: {from_status} -> {to_status}")
            return

        scope = f"{len(member_ids)} member(s)" if member_ids else "all members"
        self.log_info(f"Reconciling {scope}")
        report = runner.reconcile_members(member_ids, now=now)

        for transition in report.applied:
            if self.verbosity >= 2:
                self.stdout.write(
                    f"  member {transition.member_id}: {transition.from_status} -> "
                    f"{transition.to_status} ({transition.reason})"
                )
        if report.conflicts:
            self.log_info(
                f"Skipped {len(report.conflicts)} member(s) changed by another writer"
            )
        for warning in report.warnings:
            self.log_warning(warning)

        self.log_success(
            f"Applied {len(report.applied)} lifecycle transition(s), "
            f"{len(report.conflicts)} conflict(s), {len(report.warnings)} warning(s)"
        )
