from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.serializers import RegisterSerializer, TicketSerializer
from events.services import registrations as registration_service


class RegisterEventView(APIView):
    """
    POST /api/events/<event_id>/register/

    Solo registration or merchandise purchase. Team-based events go
    through the teams endpoints instead.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reg = registration_service.register_for_event(event_id, request.user, **serializer.validated_data)

        message = (
            "Purchase successful! Check your email for ticket details."
            if reg.event.is_merchandise
            else "Registration successful! Check your email for ticket details."
        )
        return Response(
            {"message": message, "registration": TicketSerializer(reg).data},
            status=status.HTTP_201_CREATED,
        )


class CancelRegistrationView(APIView):
    """
    POST /api/events/tickets/<ticket_id>/cancel/
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, ticket_id):
        result = registration_service.cancel_registration(ticket_id, request.user)
        return Response(result)


class TicketDetailView(APIView):
    """
    GET /api/events/tickets/<ticket_id>/
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, ticket_id):
        reg = registration_service.get_ticket(ticket_id, request.user)
        return Response(TicketSerializer(reg).data)
