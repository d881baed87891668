from django.urls import path
from .views import (
    EventDetailView,
    EventStatusView,
    RegisterEventView,
    CancelRegistrationView,
    TicketDetailView,
    TeamCreateView,
    TeamJoinView,
    TeamLeaveView,
    MyTeamView,
    EventTeamListView,
    EventFormView,
    AttendanceScanView,
    AttendanceMarkView,
    AttendanceStatsView,
    ParticipantListView,
)

urlpatterns = [
    # Teams
    path("teams/", TeamCreateView.as_view(), name="team-create"),
    path("teams/join/", TeamJoinView.as_view(), name="team-join"),
    path("teams/<int:team_id>/leave/", TeamLeaveView.as_view(), name="team-leave"),
    path("teams/mine/<int:event_id>/", MyTeamView.as_view(), name="team-mine"),

    # Tickets
    path("tickets/<str:ticket_id>/", TicketDetailView.as_view(), name="ticket-detail"),
    path("tickets/<str:ticket_id>/cancel/", CancelRegistrationView.as_view(), name="ticket-cancel"),

    # Events
    path("<int:event_id>/", EventDetailView.as_view(), name="event-detail"),
    path("<int:event_id>/status/", EventStatusView.as_view(), name="event-status"),
    path("<int:event_id>/register/", RegisterEventView.as_view(), name="event-register"),
    path("<int:event_id>/teams/", EventTeamListView.as_view(), name="event-team-list"),

    # Organizer tools
    path("<int:event_id>/form/", EventFormView.as_view(), name="event-form"),
    path("<int:event_id>/participants/", ParticipantListView.as_view(), name="event-participants"),
    path("<int:event_id>/attendance/", AttendanceStatsView.as_view(), name="event-attendance"),
    path("<int:event_id>/attendance/scan/", AttendanceScanView.as_view(), name="event-attendance-scan"),
    path(
        "<int:event_id>/attendance/<int:registration_id>/",
        AttendanceMarkView.as_view(),
        name="event-attendance-mark",
    ),
]
