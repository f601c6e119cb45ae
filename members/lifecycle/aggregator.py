"""
Activity aggregation.

Reduces the payment and check-in records visible to the engine to a single
"last observed activity" per registry identifier. Producers are external and
do not agree on a timestamp format, so parsing happens here; a record whose
timestamp cannot be read counts as absent rather than failing the pass.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone as dt_timezone

from dateutil import parser as date_parser
from django.utils import timezone

from .exceptions import MalformedActivityTimestamp

logger = logging.getLogger(__name__)

# Shorter digit strings are compact dates such as 20250101, not epoch milliseconds.
EPOCH_MILLIS_MIN_DIGITS = 10


def parse_activity_timestamp(value):
    """
    Return `value` as an aware datetime.

    Accepts datetimes, ISO-8601 (or other dateutil-readable) text, and epoch
    milliseconds as int, float or digit string of at least
    EPOCH_MILLIS_MIN_DIGITS digits. Naive values are taken to be in the
    current time zone.

    Raises:
        MalformedActivityTimestamp: when the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool) or value is None:
        raise MalformedActivityTimestamp(value)
    elif isinstance(value, (int, float)):
        parsed = _from_epoch_millis(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise MalformedActivityTimestamp(value)
        if text.isdigit() and len(text) >= EPOCH_MILLIS_MIN_DIGITS:
            parsed = _from_epoch_millis(int(text))
        else:
            try:
                parsed = date_parser.parse(text)
            except (ValueError, OverflowError) as e:
                raise MalformedActivityTimestamp(value) from e
    else:
        raise MalformedActivityTimestamp(value)

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def _from_epoch_millis(millis):
    try:
        return datetime.fromtimestamp(millis / 1000, tz=dt_timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        raise MalformedActivityTimestamp(millis) from e


def last_activity(membership_identifier, records):
    """
    Latest occurred_at among `records` matching `membership_identifier`.

    Returns None when no record with a readable timestamp matches. Records
    with unreadable timestamps are skipped and logged at debug level.
    """
    if not membership_identifier:
        return None

    latest = None
    for record in records:
        if record.membership_identifier != membership_identifier:
            continue
        try:
            occurred_at = parse_activity_timestamp(record.occurred_at)
        except MalformedActivityTimestamp as e:
            logger.debug(
                "Ignoring %s record for %s: %s", record.kind, membership_identifier, e
            )
            continue
        if latest is None or occurred_at > latest:
            latest = occurred_at
    return latest


def index_activity(records):
    """Group records by registry identifier for batch reconciliation."""
    grouped = defaultdict(list)
    for record in records:
        if record.membership_identifier:
            grouped[record.membership_identifier].append(record)
    return grouped
