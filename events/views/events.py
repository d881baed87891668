from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication

from events.exceptions import NotFoundError
from events.models import Event
from events.policies import EventPolicy
from events.serializers import EventStatusSerializer, EventSummarySerializer
from events.services import organizer as organizer_service
from events.state_machine import get_allowed_transitions


class EventDetailView(APIView):
    """
    GET /api/events/<event_id>/

    Includes live capacity numbers and, for the organizer, the allowed
    next statuses.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise NotFoundError("Event not found", code="event_not_found")

        data = EventSummarySerializer(event).data
        if EventPolicy.can_manage_event(request.user, event):
            data["allowed_transitions"] = get_allowed_transitions(event)
        return Response(data)


class EventStatusView(APIView):
    """
    POST /api/events/<event_id>/status/
    Body: { "status": "published" | "ongoing" | "completed" | "closed" }
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = EventStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event, message = organizer_service.change_event_status(
            event_id, request.user, serializer.validated_data["status"]
        )
        return Response({"event_id": event.id, "status": event.status, "message": message})
