from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Event, Registration, Team, TeamMember
from .policies import EventPolicy


# -----------------------------------------
# EVENT
# -----------------------------------------
class EventSummarySerializer(serializers.ModelSerializer):
    spots_left = serializers.IntegerField(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "name",
            "event_type",
            "status",
            "eligibility",
            "start_time",
            "end_time",
            "registration_deadline",
            "registration_limit",
            "current_registrations",
            "spots_left",
            "team_based",
            "min_team_size",
            "max_team_size",
            "custom_form",
            "form_locked",
        ]
        read_only_fields = fields


class EventStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Event.STATUS_CHOICES)


# -----------------------------------------
# TEAMS
# -----------------------------------------
class TeamMemberSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = TeamMember
        fields = ["id", "user", "role", "status", "joined_at", "left_at"]
        read_only_fields = fields


class TeamSerializer(serializers.ModelSerializer):
    """
    Team with its roster.

    The invite code is only shown to members of the team and to the
    people managing the event; pass the viewer as context["request"].
    """
    leader = UserSummarySerializer(read_only=True)
    members = serializers.SerializerMethodField()
    current_size = serializers.SerializerMethodField()
    spots_remaining = serializers.SerializerMethodField()
    invite_code = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = [
            "id",
            "event",
            "team_name",
            "leader",
            "max_size",
            "current_size",
            "spots_remaining",
            "invite_code",
            "status",
            "members",
            "created_at",
            "completed_at",
            "cancelled_at",
        ]
        read_only_fields = fields

    def _roster(self, obj):
        if not hasattr(obj, "_roster_cache"):
            obj._roster_cache = list(obj.roster())
        return obj._roster_cache

    def get_members(self, obj):
        return TeamMemberSerializer(self._roster(obj), many=True).data

    def get_current_size(self, obj):
        if obj.status == Team.STATUS_CANCELLED:
            return 0
        return len(self._roster(obj))

    def get_spots_remaining(self, obj):
        return max(0, obj.max_size - self.get_current_size(obj))

    def get_invite_code(self, obj):
        request = self.context.get("request")
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            return None
        if any(m.user_id == user.id for m in self._roster(obj)):
            return obj.invite_code
        if EventPolicy.can_manage_event(user, obj.event):
            return obj.invite_code
        return None


class CreateTeamSerializer(serializers.Serializer):
    event_id = serializers.IntegerField()
    team_name = serializers.CharField(max_length=255, allow_blank=True)
    max_size = serializers.IntegerField()


class JoinTeamSerializer(serializers.Serializer):
    invite_code = serializers.CharField(max_length=16)


# -----------------------------------------
# REGISTRATIONS / TICKETS
# -----------------------------------------
class TicketSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    event = EventSummarySerializer(read_only=True)

    class Meta:
        model = Registration
        fields = [
            "id",
            "ticket_id",
            "event",
            "user",
            "event_type",
            "status",
            "team",
            "team_name",
            "quantity",
            "selected_size",
            "selected_color",
            "selected_variant",
            "custom_form_data",
            "registered_at",
            "cancelled_at",
            "attendance",
            "attendance_marked_at",
            "attendance_method",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(required=False, min_value=1)
    selected_size = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    selected_color = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    selected_variant = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    custom_form_data = serializers.DictField(required=False, default=dict)


# -----------------------------------------
# ORGANIZER
# -----------------------------------------
class CustomFormSerializer(serializers.Serializer):
    custom_form = serializers.ListField(child=serializers.DictField(), allow_empty=True)


class ScanTicketSerializer(serializers.Serializer):
    ticket_id = serializers.CharField(max_length=32)
    # Event id embedded in the QR payload, if the scanner decoded one
    event_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class MarkAttendanceSerializer(serializers.Serializer):
    attended = serializers.BooleanField(default=True)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default="")


class ParticipantSerializer(serializers.ModelSerializer):
    """A registration as the organizer sees it in participant and attendance lists."""
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Registration
        fields = [
            "id",
            "ticket_id",
            "user",
            "status",
            "team_name",
            "quantity",
            "custom_form_data",
            "attendance",
            "attendance_marked_at",
            "attendance_method",
            "registered_at",
        ]
        read_only_fields = fields
