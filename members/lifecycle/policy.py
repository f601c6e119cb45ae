"""
Lifecycle policy.

A pure decision function: given what is known about a member and the clock,
return the status the member should have. No I/O and no hidden state, so
evaluating the same inputs twice always gives the same answer.

Rules, in precedence order:

1. Deceased stays Deceased. Only a manual restore leaves it.
2. An explicit deceased flag makes the member Deceased.
3. Activity within the reactivation window makes the member Active.
4. An Active member with no activity, or none within the inactivity
   threshold, becomes Archived.
5. A member Archived for at least the archived-to-deceased threshold
   becomes Deceased.
6. Otherwise the status is unchanged.
"""

from .types import LifecycleStatus


def evaluate(
    current,
    last_activity,
    now,
    thresholds,
    status_changed_at=None,
    manual_flag=None,
):
    """
    Return the target LifecycleStatus for a member.

    Args:
        current: the member's stored lifecycle status.
        last_activity: latest activity datetime, or None when there is none.
        now: evaluation time.
        thresholds: a Thresholds instance.
        status_changed_at: when `current` was entered; required to infer
            Deceased from a long archival.
        manual_flag: LifecycleStatus.DECEASED when a death has been reported
            out of band, else None.
    """
    if current == LifecycleStatus.DECEASED:
        return LifecycleStatus.DECEASED

    if manual_flag == LifecycleStatus.DECEASED:
        return LifecycleStatus.DECEASED

    if last_activity is not None and now - last_activity <= thresholds.reactivation_window:
        return LifecycleStatus.ACTIVE

    if current == LifecycleStatus.ACTIVE:
        if last_activity is None or now - last_activity > thresholds.inactivity_to_archive:
            return LifecycleStatus.ARCHIVED

    if current == LifecycleStatus.ARCHIVED and status_changed_at is not None:
        if now - status_changed_at >= thresholds.archived_to_deceased:
            return LifecycleStatus.DECEASED

    return LifecycleStatus(current)


def describe_reason(current, target, last_activity, now, manual_flag=None):
    """Human-readable reason for an automatic transition, for the audit log."""
    if target == LifecycleStatus.ACTIVE:
        return f"Recent activity on {last_activity:%Y-%m-%d}"
    if target == LifecycleStatus.ARCHIVED:
        if last_activity is None:
            return "No recorded activity"
        return f"Inactive for {(now - last_activity).days} days"
    if target == LifecycleStatus.DECEASED:
        if manual_flag == LifecycleStatus.DECEASED:
            return "Reported deceased"
        return "Archived beyond the deceased threshold"
    return f"{current} unchanged"
