from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Union

from django.db import models


class LifecycleStatus(models.TextChoices):
    ACTIVE = "Active", "Active"
    ARCHIVED = "Archived", "Archived"
    DECEASED = "Deceased", "Deceased"


class TransitionKind(models.TextChoices):
    AUTOMATIC = "automatic", "Automatic"
    MANUAL = "manual", "Manual"


class ActivityKind(models.TextChoices):
    PAYMENT = "payment", "Payment"
    CHECKIN = "checkin", "Biometric check-in"


@dataclass(frozen=True)
class Thresholds:
    """
    Durations that drive the automatic lifecycle policy.

    inactivity_to_archive: no activity for longer than this archives an
        Active member.
    archived_to_deceased: a member continuously Archived for at least this
        long is inferred Deceased.
    reactivation_window: activity at most this old reactivates a member.
    """

    inactivity_to_archive: timedelta
    archived_to_deceased: timedelta
    reactivation_window: timedelta

    def __post_init__(self):
        for name in ("inactivity_to_archive", "archived_to_deceased", "reactivation_window"):
            value = getattr(self, name)
            if not isinstance(value, timedelta) or value <= timedelta(0):
                raise ValueError(f"{name} must be a positive duration, got {value!r}")

    @classmethod
    def from_days(cls, inactivity_to_archive, archived_to_deceased, reactivation_window):
        return cls(
            inactivity_to_archive=timedelta(days=inactivity_to_archive),
            archived_to_deceased=timedelta(days=archived_to_deceased),
            reactivation_window=timedelta(days=reactivation_window),
        )


@dataclass(frozen=True)
class MemberSnapshot:
    """The lifecycle view of a member as read from the member store."""

    member_id: int
    membership_identifier: Optional[str]
    lifecycle_status: str
    status_changed_at: datetime
    version: int
    manual_flag: Optional[str] = None


@dataclass(frozen=True)
class Activity:
    """
    A payment or check-in observed for a registry identifier.

    occurred_at is kept as supplied by the producer (a datetime, ISO text, or
    epoch milliseconds) and parsed by the aggregator.
    """

    membership_identifier: str
    kind: str
    occurred_at: Union[datetime, str, int, float, None]


@dataclass(frozen=True)
class Transition:
    member_id: int
    from_status: str
    to_status: str
    kind: str
    reason: str
    changed_at: datetime
    actor_id: Optional[int] = None


@dataclass
class ReconcileReport:
    applied: list[Transition] = field(default_factory=list)
    conflicts: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self):
        return bool(self.applied)


@dataclass
class OverrideResult:
    transition: Optional[Transition] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self):
        return self.transition is not None
