import time

from django.conf import settings
from django.db import connections
from django.db.utils import OperationalError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from events.exceptions import PermissionDeniedError
from events.policies import EventPolicy
from events.services.teams import get_event_or_404
from .models import DomainActivity
from .serializers import DomainActivitySerializer


class EventActivityView(APIView):
    """
    GET /api/core/events/<event_id>/activity/

    Audit trail of team and registration changes for one event.
    Organizer of the event or admins only.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = get_event_or_404(event_id)
        if not EventPolicy.can_manage_event(request.user, event):
            raise PermissionDeniedError("Only the event organizer can view its activity", code="not_event_manager")

        qs = (
            DomainActivity.objects
            .filter(event=event)
            .exclude(visibility=DomainActivity.VISIBILITY_PRIVATE)
            .select_related("actor")
        )

        verb = request.query_params.get("verb")
        if verb:
            qs = qs.filter(verb=verb)

        return Response({"results": DomainActivitySerializer(qs[:200], many=True).data})


class HealthCheckView(APIView):
    """
    Lightweight health endpoint for uptime checks.
    - Checks DB connectivity
    - Returns env and simple latency
    """
    permission_classes = [AllowAny]
    authentication_classes = []  # public endpoint

    def get(self, request, *args, **kwargs):
        start = time.time()

        db_ok = True
        try:
            connections["default"].cursor()
        except OperationalError:
            db_ok = False

        duration_ms = int((time.time() - start) * 1000)

        return Response(
            {
                "status": "ok" if db_ok else "degraded",
                "db": db_ok,
                "env": getattr(settings, "ENV", "unknown"),
                "latency_ms": duration_ms,
            }
        )
