# events/views/teams.py - Team Formation API Views

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.serializers import (
    CreateTeamSerializer,
    JoinTeamSerializer,
    TeamSerializer,
    TicketSerializer,
)
from events.services import teams as team_engine
from events.throttles import TeamJoinThrottle


class TeamCreateView(APIView):
    """
    POST /api/events/teams/
    Body: {"event_id": 1, "team_name": "...", "max_size": 3}
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreateTeamSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        team = team_engine.create_team(
            event_id=data["event_id"],
            user=request.user,
            team_name=data["team_name"],
            requested_size=data["max_size"],
        )

        return Response(
            {
                "message": "Team created! Share the invite code with your teammates.",
                "team": TeamSerializer(team, context={"request": request}).data,
            },
            status=status.HTTP_201_CREATED,
        )


class TeamJoinView(APIView):
    """
    POST /api/events/teams/join/
    Body: {"invite_code": "9F3A01BC"}

    Filling the last spot issues tickets for the whole team.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]
    throttle_classes = [TeamJoinThrottle]
    throttle_scope = "team-join"

    def post(self, request):
        serializer = JoinTeamSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = team_engine.join_team(serializer.validated_data["invite_code"], request.user)

        payload = {
            "message": result.message,
            "team": TeamSerializer(result.team, context={"request": request}).data,
            "team_complete": result.team_complete,
        }
        if result.team_complete:
            payload["tickets"] = TicketSerializer(result.tickets, many=True).data

        return Response(payload, status=status.HTTP_200_OK)


class TeamLeaveView(APIView):
    """
    POST /api/events/teams/<team_id>/leave/

    Leader leaving disbands the team; anyone else just drops out.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, team_id):
        result = team_engine.leave_team(team_id, request.user)
        return Response(
            {
                "message": result.message,
                "branch": result.branch,
                "cancelled_registrations": result.cancelled_registrations,
            }
        )


class MyTeamView(APIView):
    """
    GET /api/events/teams/mine/<event_id>/
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        mine = team_engine.get_my_team(event_id, request.user)
        team_data = None
        if mine.team is not None:
            team_data = TeamSerializer(mine.team, context={"request": request}).data

        return Response(
            {
                "team": team_data,
                "tickets": TicketSerializer(mine.tickets, many=True).data,
            }
        )


class EventTeamListView(APIView):
    """
    GET /api/events/<event_id>/teams/
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        teams = team_engine.list_teams(event_id)

        status_param = request.query_params.get("status")
        if status_param:
            teams = teams.filter(status=status_param)

        serializer = TeamSerializer(teams, many=True, context={"request": request})
        return Response({"teams": serializer.data})
