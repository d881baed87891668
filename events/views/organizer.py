# events/views/organizer.py - Organizer tools: registration form, attendance, participants

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication

from events.exceptions import ValidationError
from events.serializers import (
    CustomFormSerializer,
    EventSummarySerializer,
    MarkAttendanceSerializer,
    ParticipantSerializer,
    ScanTicketSerializer,
)
from events.services import attendance as attendance_service
from events.services import organizer as organizer_service
from events.throttles import QRScanThrottle


def _parse_bool(value, label):
    if value is None or value == "":
        return None
    lowered = str(value).lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationError(f"{label} must be true or false", code="invalid_filter")


class EventFormView(APIView):
    """
    PUT /api/events/<event_id>/form/
    Body: {"custom_form": [{"field_name": "...", "field_type": "select", "required": true, "options": [...]}]}

    Locked once the first ticket is issued.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def put(self, request, event_id):
        serializer = CustomFormSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = organizer_service.update_custom_form(
            event_id, request.user, serializer.validated_data["custom_form"]
        )
        return Response({"message": "Form updated", "event": EventSummarySerializer(event).data})


class AttendanceScanView(APIView):
    """
    POST /api/events/<event_id>/attendance/scan/
    Body: {"ticket_id": "TKT-...", "event_id": "<id from the QR payload>"}
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]
    throttle_classes = [QRScanThrottle]
    throttle_scope = "qr-scan"

    def post(self, request, event_id):
        serializer = ScanTicketSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        reg = attendance_service.scan_ticket(
            event_id,
            request.user,
            data["ticket_id"],
            qr_event_id=data.get("event_id"),
        )
        return Response({
            "message": "Attendance marked successfully",
            "participant": ParticipantSerializer(reg).data,
        })


class AttendanceMarkView(APIView):
    """
    POST /api/events/<event_id>/attendance/<registration_id>/
    Body: {"attended": true, "reason": "QR would not scan"}
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id, registration_id):
        serializer = MarkAttendanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        reg = attendance_service.set_attendance(
            event_id,
            request.user,
            registration_id,
            attended=data["attended"],
            reason=data["reason"],
        )
        return Response({
            "message": "Attendance updated",
            "participant": ParticipantSerializer(reg).data,
        })


class AttendanceStatsView(APIView):
    """
    GET /api/events/<event_id>/attendance/
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        stats = attendance_service.attendance_stats(event_id, request.user)
        return Response({
            "total": stats["total"],
            "scanned": stats["scanned"],
            "not_scanned": stats["not_scanned"],
            "scanned_list": ParticipantSerializer(stats["scanned_list"], many=True).data,
            "not_scanned_list": ParticipantSerializer(stats["not_scanned_list"], many=True).data,
        })


class ParticipantListView(APIView):
    """
    GET /api/events/<event_id>/participants/?search=&status=&attendance=&institution=
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        params = request.query_params
        regs = attendance_service.list_participants(
            event_id,
            request.user,
            search=params.get("search"),
            status=params.get("status"),
            attendance=_parse_bool(params.get("attendance"), "attendance"),
            institution=params.get("institution"),
        )
        return Response({"participants": ParticipantSerializer(regs, many=True).data})
