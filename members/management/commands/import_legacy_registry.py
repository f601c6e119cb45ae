import json
import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import IntegrityError, transaction
from django.utils import timezone

from activity.models import ActivityRecord
from members.lifecycle.boundary import (
    coerce_checkin,
    coerce_member_payload,
    coerce_payment_payload,
)
from members.models import Member

logger = logging.getLogger(__name__)


def _records(section):
    """Legacy exports hold either {key: record} objects or plain lists."""
    if section is None:
        return []
    if isinstance(section, dict):
        return list(section.items())
    if isinstance(section, list):
        return [(str(index), record) for index, record in enumerate(section)]
    raise CommandError("Export sections must be objects or lists")


class Command(BaseCommand):
    help = (
        "Import members, payments and check-ins from a legacy registry JSON export. "
        "Existing members (same registry identifier) and already imported "
        "activity are skipped, so the import can be re-run."
    )

    def add_arguments(self, parser):
        parser.add_argument("export", help="Path to the JSON export file")
        parser.add_argument(
            "--dry-run", action="store_true", help="Run without saving changes"
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        path = options["export"]
        self.stdout.write(self.style.NOTICE(f"Reading legacy export {path}..."))

        try:
            with open(path, encoding="utf-8") as f:
                export = json.load(f)
        except OSError as e:
            raise CommandError(f"Cannot read {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CommandError(f"{path} is not valid JSON: {e}") from e
        if not isinstance(export, dict):
            raise CommandError("Export must be a JSON object with members and payments")

        members = _records(export.get("members"))
        payments = _records(export.get("payments"))

        imported = skipped = 0
        activity_created = 0

        for key, payload in members:
            try:
                fields = coerce_member_payload(key, payload)
            except ValueError as e:
                logger.warning("Skipping legacy member %s: %s", key, e)
                self.stdout.write(self.style.WARNING(f"Skipped {key}: {e}"))
                skipped += 1
                continue

            identifier = fields["membership_identifier"]
            if Member.objects.filter(membership_identifier=identifier).exists():
                self.stdout.write(f"Already registered: {identifier}")
                skipped += 1
            elif dry_run:
                self.stdout.write(
                    "[DRY RUN] Would import: {} {} ({}, {})".format(
                        fields["first_name"],
                        fields["last_name"],
                        identifier,
                        fields["lifecycle_status"],
                    )
                )
                imported += 1
            else:
                self._create_member(fields)
                self.stdout.write(
                    "Imported: {} {} ({})".format(
                        fields["first_name"], fields["last_name"], identifier
                    )
                )
                imported += 1

            checkin = coerce_checkin(payload)
            if checkin is not None and self._record_activity(
                checkin, f"legacy-member:{key}", dry_run
            ):
                activity_created += 1

        for key, payload in payments:
            payment = coerce_payment_payload(payload)
            if payment is None or payment.occurred_at is None:
                logger.warning("Skipping legacy payment %s: no member or date", key)
                skipped += 1
                continue
            if self._record_activity(payment, f"legacy-payment:{key}", dry_run):
                activity_created += 1

        prefix = "[DRY RUN] " if dry_run else ""
        self.stdout.write(
            self.style.SUCCESS(
                f"{prefix}Import complete. Members imported: {imported}, "
                f"activity records: {activity_created}, skipped: {skipped}"
            )
        )

    def _create_member(self, fields):
        status_changed_at = fields.pop("status_changed_at") or timezone.now()
        member = Member(status_changed_at=status_changed_at, **fields)
        member.set_unusable_password()
        member.save()
        return member

    def _record_activity(self, activity, source_reference, dry_run):
        """Store one legacy activity unless it was imported before."""
        exists = ActivityRecord.objects.filter(
            kind=activity.kind, source_reference=source_reference
        ).exists()
        if exists:
            return False
        if dry_run:
            return True
        try:
            with transaction.atomic():
                ActivityRecord.objects.create(
                    membership_identifier=activity.membership_identifier,
                    kind=activity.kind,
                    occurred_at=str(activity.occurred_at),
                    source_reference=source_reference,
                )
        except IntegrityError:
            logger.debug("Activity %s was imported concurrently", source_reference)
            return False
        return True
