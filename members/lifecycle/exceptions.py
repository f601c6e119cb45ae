from django.core.exceptions import ImproperlyConfigured


class LifecycleError(Exception):
    """Base class for lifecycle engine errors."""


class MalformedActivityTimestamp(LifecycleError, ValueError):
    """An activity record carries a timestamp that cannot be parsed."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unparsable activity timestamp: {value!r}")


class VersionConflict(LifecycleError):
    """A conditional write lost a race with another writer."""

    def __init__(self, member_id, expected_version):
        self.member_id = member_id
        self.expected_version = expected_version
        super().__init__(
            f"Member {member_id} changed since version {expected_version} was read"
        )


class GuardRejected(LifecycleError):
    """A manual transition's precondition does not hold. Nothing was written."""

    def __init__(self, member_id, reason):
        self.member_id = member_id
        self.reason = reason
        super().__init__(reason)


class StoreError(LifecycleError):
    """The member store is unreachable or failed. Safe for the caller to retry."""

    retryable = True


class MemberNotFound(StoreError):
    retryable = False

    def __init__(self, member_id):
        self.member_id = member_id
        super().__init__(f"Member {member_id} does not exist")


class NotifyFailure(LifecycleError):
    """The audit log could not record a transition that was already applied."""


class ThresholdsNotConfigured(LifecycleError, ImproperlyConfigured):
    """No lifecycle thresholds have been configured for this deployment."""
