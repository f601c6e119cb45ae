import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError

from members.lifecycle.exceptions import StoreError, ThresholdsNotConfigured
from members.lifecycle.types import Thresholds
from siteconfig.models import SITECONFIG_CACHE_KEY, SiteConfiguration

logger = logging.getLogger(__name__)

# Saves only clear the local cache; other workers see new values once this expires.
SITECONFIG_CACHE_TIMEOUT = 60


def get_siteconfig():
    """
    Return the SiteConfiguration row, or None when none has been saved.

    Raises:
        StoreError: the configuration table could not be read.
    """
    config = cache.get(SITECONFIG_CACHE_KEY)
    if config is None:
        try:
            config = SiteConfiguration.objects.first()
        except DatabaseError as e:
            raise StoreError(f"Could not read site configuration: {e}") from e
        if config is not None:
            cache.set(SITECONFIG_CACHE_KEY, config, SITECONFIG_CACHE_TIMEOUT)
    return config


def get_lifecycle_thresholds():
    """
    Thresholds currently in force.

    The admin-edited SiteConfiguration wins; settings.LIFECYCLE_THRESHOLDS
    (days) is the fallback for deployments that have not saved one yet.

    Raises:
        ThresholdsNotConfigured: neither source provides thresholds.
        StoreError: the configuration table could not be read.
    """
    config = get_siteconfig()
    if config is not None:
        return config.get_lifecycle_thresholds()

    fallback = getattr(settings, "LIFECYCLE_THRESHOLDS", None)
    if fallback:
        logger.debug("No SiteConfiguration saved; using settings.LIFECYCLE_THRESHOLDS")
        try:
            return Thresholds.from_days(**fallback)
        except (TypeError, ValueError) as e:
            raise ThresholdsNotConfigured(
                f"settings.LIFECYCLE_THRESHOLDS is invalid: {e}"
            ) from e

    raise ThresholdsNotConfigured(
        "Lifecycle thresholds are not configured. Save a Site Configuration in the "
        "admin or set the LIFECYCLE_*_DAYS environment variables."
    )
