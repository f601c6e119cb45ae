"""
Health check views for Kubernetes and load balancer monitoring
"""

import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt

from members.lifecycle.exceptions import StoreError, ThresholdsNotConfigured

logger = logging.getLogger(__name__)


@csrf_exempt
@never_cache
def health_check(request):
    """
    Report whether the registry can serve lifecycle work.

    Returns 200 when the database answers and lifecycle thresholds are
    configured, 503 otherwise, with the failing check named in the body.
    """
    from siteconfig.utils import get_lifecycle_thresholds

    checks = {"database": "ok", "lifecycle_thresholds": "ok"}
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.warning("Health check: database unavailable: %s", e)
        checks["database"] = "unavailable"
        checks["lifecycle_thresholds"] = "unknown"
    else:
        try:
            get_lifecycle_thresholds()
        except ThresholdsNotConfigured:
            checks["lifecycle_thresholds"] = "not configured"
        except StoreError as e:
            logger.warning("Health check: site configuration unreadable: %s", e)
            checks["lifecycle_thresholds"] = "unavailable"

    healthy = all(value == "ok" for value in checks.values())
    return JsonResponse(
        {"status": "ok" if healthy else "degraded", "checks": checks},
        status=200 if healthy else 503,
    )
