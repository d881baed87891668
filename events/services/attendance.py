# events/services/attendance.py
"""
Venue check-in for issued tickets, and the organizer's participant views.

Only the event's organizer (or an admin) may scan or mark attendance.
A ticket is checked in once; cancelled tickets are never admitted.
"""
import logging
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from core.constants import ACTIVITY_ATTENDANCE_CLEARED, ACTIVITY_ATTENDANCE_MARKED
from core.services import ActivityService
from events.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from events.models import Event, Registration
from events.policies import get_managed_event
from events.sanitizers import sanitize_text
from users.models import User

logger = logging.getLogger('eventhub.events')

INSTITUTION_ROLES = {
    Event.ELIGIBILITY_IIIT: User.ROLE_IIIT_STUDENT,
    Event.ELIGIBILITY_NON_IIIT: User.ROLE_NON_IIIT_STUDENT,
}


def _mark(reg: Registration, method: str) -> None:
    reg.attendance = True
    reg.attendance_marked_at = timezone.now()
    reg.attendance_method = method
    reg.save(update_fields=['attendance', 'attendance_marked_at', 'attendance_method'])


def scan_ticket(event_id, user, ticket_id, qr_event_id=None) -> Registration:
    """
    Check in the holder of `ticket_id` at the door.

    `qr_event_id` is the event id encoded in the QR payload, when the
    scanner sends it.
    """
    event = get_managed_event(event_id, user)

    if qr_event_id not in (None, "") and str(qr_event_id) != str(event.id):
        raise ValidationError("QR code is for a different event", code="wrong_event")

    ticket_id = sanitize_text(ticket_id, max_length=32)

    with transaction.atomic():
        reg = (
            Registration.objects
            .select_for_update()
            .filter(ticket_id=ticket_id, event=event)
            .first()
        )
        if reg is None:
            raise NotFoundError("Invalid ticket - no registration found", code="invalid_ticket")
        if reg.status == Registration.STATUS_CANCELLED:
            raise StateError("This registration has been cancelled", code="registration_cancelled")
        if reg.attendance:
            raise ConflictError(
                f"Already scanned at {reg.attendance_marked_at:%Y-%m-%d %H:%M}",
                code="duplicate_scan",
            )

        _mark(reg, Registration.ATTENDANCE_QR_SCAN)

        ActivityService.log_activity(
            actor=user,
            verb=ACTIVITY_ATTENDANCE_MARKED,
            target=reg,
            event=event,
            metadata={'ticket_id': reg.ticket_id, 'method': Registration.ATTENDANCE_QR_SCAN},
        )

    logger.info(f"Ticket scanned: event={event.id}, ticket={reg.ticket_id}, scanner={user.id}")
    return reg


def set_attendance(event_id, user, registration_id, attended: bool = True, reason: str = "") -> Registration:
    """
    Manual override for a single registration, e.g. a participant whose
    phone died at the door. Clearing attendance is allowed too.
    """
    event = get_managed_event(event_id, user)
    reason = sanitize_text(reason, max_length=255)

    with transaction.atomic():
        reg = (
            Registration.objects
            .select_for_update()
            .filter(pk=registration_id, event=event)
            .first()
        )
        if reg is None:
            raise NotFoundError("Registration not found", code="registration_not_found")
        if reg.status == Registration.STATUS_CANCELLED:
            raise StateError("This registration has been cancelled", code="registration_cancelled")

        if attended:
            if reg.attendance:
                return reg
            _mark(reg, Registration.ATTENDANCE_MANUAL)
            verb = ACTIVITY_ATTENDANCE_MARKED
        else:
            if not reg.attendance:
                return reg
            reg.attendance = False
            reg.attendance_marked_at = None
            reg.attendance_method = Registration.ATTENDANCE_MANUAL
            reg.save(update_fields=['attendance', 'attendance_marked_at', 'attendance_method'])
            verb = ACTIVITY_ATTENDANCE_CLEARED

        ActivityService.log_activity(
            actor=user,
            verb=verb,
            target=reg,
            event=event,
            metadata={
                'ticket_id': reg.ticket_id,
                'method': Registration.ATTENDANCE_MANUAL,
                'reason': reason,
            },
        )

    logger.info(
        f"Manual attendance override: event={event.id}, ticket={reg.ticket_id}, "
        f"attended={attended}, organizer={user.id}, reason={reason or 'N/A'}"
    )
    return reg


def attendance_stats(event_id, user) -> dict:
    """Checked-in and not-yet-checked-in holders of live tickets."""
    event = get_managed_event(event_id, user)

    regs = list(
        Registration.objects
        .filter(event=event, status__in=Registration.ACTIVE_STATUSES)
        .select_related('user')
        .order_by('registered_at', 'id')
    )
    scanned = [r for r in regs if r.attendance]
    not_scanned = [r for r in regs if not r.attendance]

    return {
        'total': len(regs),
        'scanned': len(scanned),
        'not_scanned': len(not_scanned),
        'scanned_list': scanned,
        'not_scanned_list': not_scanned,
    }


def list_participants(event_id, user, search: Optional[str] = None, status: Optional[str] = None,
                      attendance: Optional[bool] = None, institution: Optional[str] = None):
    """
    Registrations of an event for the organizer, with optional filters:
    free-text search over name, email, username and ticket id; ticket
    status; attendance; and institution ('iiit' / 'non_iiit').
    """
    event = get_managed_event(event_id, user)

    qs = Registration.objects.filter(event=event).select_related('user', 'team')

    if status:
        if status not in dict(Registration.STATUS_CHOICES):
            raise ValidationError(f"Invalid status: {status}", code="invalid_filter")
        qs = qs.filter(status=status)

    if attendance is not None:
        qs = qs.filter(attendance=attendance)

    if institution:
        role = INSTITUTION_ROLES.get(institution)
        if role is None:
            raise ValidationError(f"Invalid institution: {institution}", code="invalid_filter")
        qs = qs.filter(user__role=role)

    search = sanitize_text(search, max_length=100)
    if search:
        qs = qs.filter(
            Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
            | Q(user__email__icontains=search)
            | Q(user__username__icontains=search)
            | Q(ticket_id__icontains=search)
        )

    return qs.order_by('registered_at', 'id')


def complete_attended_registrations(event: Event) -> int:
    """
    Close out the tickets of checked-in participants when the event ends.

    Returns the number of registrations moved to `completed`.
    """
    return (
        Registration.objects
        .filter(event=event, status=Registration.STATUS_CONFIRMED, attendance=True)
        .update(status=Registration.STATUS_COMPLETED)
    )
