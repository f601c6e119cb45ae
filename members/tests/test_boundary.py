from datetime import datetime, timezone as dt_timezone

import pytest

from members.lifecycle.boundary import (
    coerce_checkin,
    coerce_legacy_status,
    coerce_member_payload,
    coerce_payment_payload,
    legacy_identifier,
    normalize_boolean,
)
from members.lifecycle.types import ActivityKind, LifecycleStatus


@pytest.mark.parametrize(
    "value,expected",
    [
        (True, True),
        ("true", True),
        ("YES", True),
        (" 1 ", True),
        (1, True),
        ("inactive", False),
        ("false", False),
        ("no", False),
        ("0", False),
        (0, False),
        (None, False),
        ("", False),
    ],
)
def test_normalize_boolean(value, expected):
    assert normalize_boolean(value) is expected


class TestLegacyStatus:
    def test_deceased_wins_over_archived(self):
        assert (
            coerce_legacy_status({"deceased": "true", "archived": True})
            == LifecycleStatus.DECEASED
        )

    def test_archived(self):
        assert coerce_legacy_status({"archived": "yes"}) == LifecycleStatus.ARCHIVED

    def test_missing_flags_mean_active(self):
        assert coerce_legacy_status({}) == LifecycleStatus.ACTIVE
        assert coerce_legacy_status({"archived": "false", "deceased": 0}) == LifecycleStatus.ACTIVE


class TestLegacyIdentifier:
    def test_older_key_names_are_accepted(self):
        assert legacy_identifier({"oscaID": "0421"}) == "0421"
        assert legacy_identifier({"memberOscaId": " 0422 "}) == "0422"

    def test_numeric_identifiers_become_text(self):
        assert legacy_identifier({"oscaID": 423}) == "423"

    def test_missing(self):
        assert legacy_identifier({"oscaID": ""}) is None


class TestCoerceMemberPayload:
    def test_maps_fields(self):
        fields = coerce_member_payload(
            "abc",
            {
                "oscaID": "0421",
                "firstName": "Maria",
                "lastName": "Santos",
                "middleName": "Reyes",
                "contactNum": "09171234567",
                "barangay": "San Roque",
                "archived": "true",
                "date_updated": "2024-02-01T00:00:00Z",
            },
        )
        assert fields["username"] == "member-0421"
        assert fields["membership_identifier"] == "0421"
        assert fields["first_name"] == "Maria"
        assert fields["middle_initial"] == "R"
        assert fields["phone"] == "09171234567"
        assert fields["lifecycle_status"] == LifecycleStatus.ARCHIVED
        assert fields["status_changed_at"] == datetime(2024, 2, 1, tzinfo=dt_timezone.utc)

    def test_unreadable_update_time_is_left_empty(self):
        fields = coerce_member_payload("abc", {"oscaID": "1", "date_updated": "banana"})
        assert fields["status_changed_at"] is None

    def test_record_without_identifier_is_rejected(self):
        with pytest.raises(ValueError):
            coerce_member_payload("abc", {"firstName": "Nobody"})

    def test_non_object_is_rejected(self):
        with pytest.raises(ValueError):
            coerce_member_payload("abc", ["not", "a", "record"])


class TestCoerceActivity:
    def test_payment(self):
        activity = coerce_payment_payload({"memberOscaId": "0421", "payDate": 1704067200000})
        assert activity.kind == ActivityKind.PAYMENT
        assert activity.membership_identifier == "0421"
        assert activity.occurred_at == 1704067200000

    def test_payment_without_member(self):
        assert coerce_payment_payload({"payDate": "2024-01-01"}) is None

    def test_checkin_from_member_record(self):
        activity = coerce_checkin({"oscaID": "0421", "lastFacialRecognition": "2025-05-01T08:00:00Z"})
        assert activity.kind == ActivityKind.CHECKIN
        assert activity.occurred_at == "2025-05-01T08:00:00Z"

    def test_member_never_checked_in(self):
        assert coerce_checkin({"oscaID": "0421"}) is None
