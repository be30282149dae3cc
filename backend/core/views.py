import logging

from django.db import connection
from django.db.utils import DatabaseError
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)


@api_view(["GET"])
@permission_classes([AllowAny])
def health(request):
    database = "ok"
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.exception("Health check could not reach the database")
        database = "unavailable"

    status_code = 200 if database == "ok" else 503
    return Response(
        {"status": "healthy" if status_code == 200 else "degraded", "database": database, "timestamp": timezone.now()},
        status=status_code,
    )
