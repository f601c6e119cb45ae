from datetime import date, datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest

from activity.models import ActivityRecord
from members.lifecycle.types import ActivityKind
from payments.models import MembershipDue, has_settled_membership_obligation


@pytest.fixture
def due(make_member):
    member = make_member("OSCA-1")
    return MembershipDue.objects.create(
        member=member, period="2025", amount=Decimal("120.00"), due_on=date(2025, 1, 31)
    )


@pytest.mark.django_db
class TestSettle:
    def test_settle_records_payment_activity(self, due):
        when = datetime(2025, 2, 3, 9, 30, tzinfo=dt_timezone.utc)

        assert due.settle(when=when, reference="OR-1001")

        due.refresh_from_db()
        assert due.is_settled
        assert due.settled_at == when
        assert due.payment_reference == "OR-1001"
        record = ActivityRecord.objects.get(source_reference=f"due:{due.pk}")
        assert record.kind == ActivityKind.PAYMENT
        assert record.membership_identifier == "OSCA-1"
        assert record.occurred_at == when.isoformat()

    def test_settling_twice_changes_nothing(self, due):
        due.settle()
        assert not due.settle()
        assert ActivityRecord.objects.count() == 1

    def test_member_without_identifier_records_no_activity(self, make_member):
        member = make_member(None)
        due = MembershipDue.objects.create(
            member=member, period="2025", amount=Decimal("120.00"), due_on=date(2025, 1, 31)
        )
        assert due.settle()
        assert not ActivityRecord.objects.exists()

    def test_str(self, due):
        assert str(due).endswith("2025 (outstanding)")


@pytest.mark.django_db
class TestSettledObligation:
    def test_no_dues_means_settled(self, make_member):
        assert has_settled_membership_obligation(make_member("OSCA-1").pk)

    def test_outstanding_past_due_blocks(self, due):
        assert not has_settled_membership_obligation(due.member_id, today=date(2025, 3, 1))

    def test_due_in_the_future_does_not_block(self, due):
        assert has_settled_membership_obligation(due.member_id, today=date(2025, 1, 1))

    def test_settled_due_does_not_block(self, due):
        due.settle()
        assert has_settled_membership_obligation(due.member_id, today=date(2025, 3, 1))

    def test_due_date_itself_counts_as_due(self, due):
        assert not has_settled_membership_obligation(
            due.member_id, today=date(2025, 1, 31)
        )

    def test_other_members_dues_are_ignored(self, due, make_member):
        other = make_member("OSCA-2")
        assert has_settled_membership_obligation(other.pk, today=date(2025, 3, 1) + timedelta(days=1))
