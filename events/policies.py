# eventhub-backend/events/policies.py
"""
Centralized policy layer for events, teams and registrations.

All permission and eligibility checks live here. Methods return
(bool, reason) so callers can surface the reason to the participant;
the `require_*` helpers raise the matching typed rejection instead.
"""
from typing import Tuple

from users.models import User
from .exceptions import NotFoundError, PermissionDeniedError, StateError
from .models import Event, Registration, TeamMember
from .state_machine import validate_action_for_status


class EventPolicy:

    @staticmethod
    def is_system_admin(user) -> bool:
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.role == User.ROLE_ADMIN

    @staticmethod
    def is_event_organizer(user, event: Event) -> bool:
        if not user or not user.is_authenticated or event is None:
            return False
        return event.organizer_id == user.id

    @staticmethod
    def can_manage_event(user, event: Event) -> bool:
        """Organizer of the event or a system admin."""
        return EventPolicy.is_system_admin(user) or EventPolicy.is_event_organizer(user, event)

    # ─────────────────────────────────────────────────────────────
    # Participation
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def is_participant(user) -> bool:
        return bool(user and user.is_authenticated and user.role in User.PARTICIPANT_ROLES)

    @staticmethod
    def check_eligibility(user, event: Event) -> Tuple[bool, str]:
        """Match the participant's role against the event's eligibility filter."""
        if event.eligibility == Event.ELIGIBILITY_IIIT and user.role != User.ROLE_IIIT_STUDENT:
            return False, "This event is only for IIIT students"
        if event.eligibility == Event.ELIGIBILITY_NON_IIIT and user.role == User.ROLE_IIIT_STUDENT:
            return False, "This event is only for Non-IIIT students"
        return True, ""

    @staticmethod
    def can_view_ticket(user, registration: Registration) -> bool:
        if registration.user_id == user.id:
            return True
        return EventPolicy.can_manage_event(user, registration.event)

    @staticmethod
    def has_active_team(user, event: Event) -> bool:
        return TeamMember.objects.filter(
            event=event,
            user=user,
            status=TeamMember.STATUS_ACTIVE,
        ).exists()

    @staticmethod
    def has_confirmed_registration(user, event: Event) -> bool:
        return Registration.objects.filter(
            event=event,
            user=user,
            status=Registration.STATUS_CONFIRMED,
        ).exists()


def require_participant(user, action: str) -> None:
    if not EventPolicy.is_participant(user):
        raise PermissionDeniedError(f"Only participants can {action}", code="participant_only")


def require_open_event(event: Event, action: str = 'register') -> None:
    ok, reason = validate_action_for_status(event, action)
    if not ok:
        raise StateError(reason, code="registration_closed")


def require_eligible(user, event: Event) -> None:
    ok, reason = EventPolicy.check_eligibility(user, event)
    if not ok:
        raise PermissionDeniedError(reason, code="not_eligible")


def get_managed_event(event_id, user, lock: bool = False) -> Event:
    """
    Load an event the caller organizes (or administers).

    With lock=True the row is taken with select_for_update, so the caller
    must already be inside a transaction.
    """
    qs = Event.objects.select_for_update() if lock else Event.objects.all()
    event = qs.filter(pk=event_id).first()
    if event is None:
        raise NotFoundError("Event not found", code="event_not_found")
    if not EventPolicy.can_manage_event(user, event):
        raise PermissionDeniedError("Only the event organizer can do this", code="not_event_manager")
    return event
