from datetime import datetime, timezone as dt_timezone

import pytest
from django.core.cache import cache

from members.lifecycle.types import LifecycleStatus, Thresholds
from members.models import Member

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture(autouse=True)
def isolated_lifecycle_config(settings):
    """Every test starts without cached site configuration or env thresholds."""
    cache.clear()
    settings.LIFECYCLE_THRESHOLDS = None
    yield
    cache.clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def thresholds():
    return Thresholds.from_days(
        inactivity_to_archive=365,
        archived_to_deceased=730,
        reactivation_window=365,
    )


@pytest.fixture
def lifecycle_settings(settings):
    """Thresholds supplied through settings, as the LIFECYCLE_*_DAYS env vars do."""
    settings.LIFECYCLE_THRESHOLDS = {
        "inactivity_to_archive": 365,
        "archived_to_deceased": 730,
        "reactivation_window": 365,
    }
    return settings


@pytest.fixture
def make_member(db):
    counter = {"n": 0}

    def _make(identifier=None, status=LifecycleStatus.ACTIVE, changed_at=NOW, **extra):
        counter["n"] += 1
        n = counter["n"]
        return Member.objects.create(
            username=extra.pop("username", f"member{n}"),
            first_name=extra.pop("first_name", "Juan"),
            last_name=extra.pop("last_name", f"Dela Cruz {n}"),
            membership_identifier=identifier,
            lifecycle_status=status,
            status_changed_at=changed_at,
            **extra,
        )

    return _make


@pytest.fixture
def operator(db):
    return Member.objects.create_superuser(
        username="operator", password="testpass123", first_name="Olivia", last_name="Operator"
    )
