from .events import EventDetailView, EventStatusView
from .registrations import RegisterEventView, CancelRegistrationView, TicketDetailView
from .teams import (
    TeamCreateView,
    TeamJoinView,
    TeamLeaveView,
    MyTeamView,
    EventTeamListView,
)
from .organizer import (
    EventFormView,
    AttendanceScanView,
    AttendanceMarkView,
    AttendanceStatsView,
    ParticipantListView,
)
