"""
Coercion of legacy registry exports.

Older registry data was written by several screens that disagreed on key
names and on how to spell a boolean. Everything is normalized here, once, so
the rest of the engine only sees LifecycleStatus values and Activity records.
"""

import logging

from members.constants.membership import (
    LEGACY_CHECKIN_KEYS,
    LEGACY_FALSY_VALUES,
    LEGACY_IDENTIFIER_KEYS,
    LEGACY_PAYMENT_DATE_KEYS,
    LEGACY_TRUTHY_VALUES,
    LEGACY_UPDATED_KEYS,
)

from .aggregator import parse_activity_timestamp
from .exceptions import MalformedActivityTimestamp
from .types import Activity, ActivityKind, LifecycleStatus

logger = logging.getLogger(__name__)


def normalize_boolean(value):
    """Interpret legacy flag values ("true", 1, "yes", "inactive", None, ...)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in LEGACY_TRUTHY_VALUES:
            return True
        if text in LEGACY_FALSY_VALUES:
            return False
    return bool(value)


def _first_present(payload, keys):
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value, max_length=None):
    if value in (None, ""):
        return None
    text = str(value).strip()
    return text[:max_length] if max_length else text


def legacy_identifier(payload):
    value = _first_present(payload, LEGACY_IDENTIFIER_KEYS)
    return str(value).strip() if value is not None else None


def coerce_legacy_status(payload):
    """Deceased wins over archived; anything else is Active."""
    if normalize_boolean(payload.get("deceased")):
        return LifecycleStatus.DECEASED
    if normalize_boolean(payload.get("archived")):
        return LifecycleStatus.ARCHIVED
    return LifecycleStatus.ACTIVE


def coerce_member_payload(key, payload):
    """
    Map one legacy member record to Member field values.

    The status change time is the record's last update, which is the closest
    the legacy data comes to recording when the status was entered.

    Raises:
        ValueError: the record is not a mapping or has no registry identifier.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Member record {key} is not an object")
    identifier = legacy_identifier(payload)
    if not identifier:
        raise ValueError(f"Member record {key} has no registry identifier")

    changed_at = None
    raw_changed = _first_present(payload, LEGACY_UPDATED_KEYS)
    if raw_changed is not None:
        try:
            changed_at = parse_activity_timestamp(raw_changed)
        except MalformedActivityTimestamp:
            logger.debug("Member record %s has unreadable update time %r", key, raw_changed)

    return {
        "username": f"member-{identifier}".lower(),
        "membership_identifier": identifier,
        "first_name": _text(payload.get("firstName"), 150) or "",
        "last_name": _text(payload.get("lastName"), 150) or "",
        "middle_initial": _text(payload.get("middleName"), 1),
        "phone": _text(payload.get("contactNum") or payload.get("phone"), 20),
        "address": _text(payload.get("address")),
        "barangay": _text(payload.get("barangay"), 100),
        "lifecycle_status": coerce_legacy_status(payload),
        "status_changed_at": changed_at,
    }


def coerce_payment_payload(payload):
    """Activity for a legacy payment record, or None when it names no member."""
    if not isinstance(payload, dict):
        return None
    identifier = legacy_identifier(payload)
    if not identifier:
        return None
    return Activity(
        membership_identifier=identifier,
        kind=ActivityKind.PAYMENT,
        occurred_at=_first_present(payload, LEGACY_PAYMENT_DATE_KEYS),
    )


def coerce_checkin(payload):
    """Activity for the last biometric check-in stored on a legacy member record."""
    if not isinstance(payload, dict):
        return None
    identifier = legacy_identifier(payload)
    occurred_at = _first_present(payload, LEGACY_CHECKIN_KEYS)
    if not identifier or occurred_at is None:
        return None
    return Activity(
        membership_identifier=identifier,
        kind=ActivityKind.CHECKIN,
        occurred_at=occurred_at,
    )
