"""Project-level views for the IT asset registry."""

import mimetypes

from django.core.files.storage import default_storage
from django.http import FileResponse, Http404, JsonResponse


def media_proxy(request, path):
    """Proxy media files (QR images, report photos) from S3 storage."""
    if not default_storage.exists(path):
        raise Http404

    content_type, _ = mimetypes.guess_type(path)
    return FileResponse(
        default_storage.open(path),
        content_type=content_type or "application/octet-stream",
    )


def health_check(request):
    """Health check endpoint for monitoring and load balancers."""
    from django.db import DatabaseError, connection

    db_ok = True
    try:
        connection.ensure_connection()
    except DatabaseError:
        db_ok = False

    return JsonResponse(
        {"status": "ok" if db_ok else "degraded", "db": db_ok},
        status=200 if db_ok else 503,
    )
