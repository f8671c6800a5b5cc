"""Project-level views that belong to no domain app."""

import structlog
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = structlog.get_logger(__name__)


def healthz(request):
    """Health check endpoint for container probes"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as exc:
        logger.error("healthz.fail", error=str(exc))
        return JsonResponse({"status": "unhealthy", "error": str(exc)}, status=503)
    logger.debug("healthz.ok", database="connected")
    return JsonResponse({"status": "healthy", "database": "connected"}, status=200)
