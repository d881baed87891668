# core/constants.py

# --- Activity Verbs (Standard Registry) ---

# Teams
ACTIVITY_TEAM_CREATED = "team.created"
ACTIVITY_TEAM_JOINED = "team.joined"
ACTIVITY_TEAM_COMPLETED = "team.completed"  # Tickets issued for the whole roster
ACTIVITY_TEAM_LEFT = "team.left"
ACTIVITY_TEAM_DISBANDED = "team.disbanded"

# Registrations
ACTIVITY_REGISTRATION_CREATED = "registration.created"
ACTIVITY_REGISTRATION_CANCELED = "registration.canceled"

# Event lifecycle
ACTIVITY_EVENT_STATUS_CHANGED = "event.status_changed"
ACTIVITY_EVENT_FORM_UPDATED = "event.form_updated"

# Attendance
ACTIVITY_ATTENDANCE_MARKED = "attendance.marked"
ACTIVITY_ATTENDANCE_CLEARED = "attendance.cleared"
