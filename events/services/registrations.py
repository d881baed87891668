# events/services/registrations.py
"""
Individual registrations: solo sign-ups, merchandise purchases and
the team-aware ticket cancellation.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.constants import ACTIVITY_REGISTRATION_CANCELED, ACTIVITY_REGISTRATION_CREATED
from core.services import ActivityService
from events.capacity import CapacityLedger
from events.emails import dispatch_ticket_notifications
from events.exceptions import ConflictError, NotFoundError, PermissionDeniedError, StateError, ValidationError
from events.identifiers import new_ticket_id
from events.models import Event, Registration, Team, TeamMember
from events.policies import EventPolicy, require_eligible, require_open_event, require_participant
from events.sanitizers import sanitize_text, validate_int
from events.services.teams import get_event_or_404, integrity_conflict, leave_locked_team

logger = logging.getLogger('eventhub.registrations')


def _has_value(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    if isinstance(value, bool):
        return value
    return True


def validate_custom_form(event: Event, form_data) -> dict:
    """
    Check answers against the organizer's custom form.

    Each form field is a dict {field_name, field_type, required, options}.
    Required fields must be filled; `select` answers must be one of the
    options and `checkbox` answers a list drawn from them.
    """
    fields = event.custom_form or []
    if not fields:
        return {}

    if not isinstance(form_data, dict):
        form_data = {}

    missing = []
    for field in fields:
        name = field.get('field_name')
        if not name:
            continue
        value = form_data.get(name)

        if not _has_value(value):
            if field.get('required'):
                missing.append(name)
            continue

        options = field.get('options') or []
        if not options:
            continue

        if field.get('field_type') == 'select':
            if not isinstance(value, str) or value not in options:
                raise ValidationError(f"Invalid value for {name}", code="invalid_form_value")
        elif field.get('field_type') == 'checkbox':
            values = value if isinstance(value, (list, tuple)) else [value]
            if any(not isinstance(v, str) or v not in options for v in values):
                raise ValidationError(f"Invalid value for {name}", code="invalid_form_value")

    if missing:
        raise ValidationError(
            f"Please fill required fields: {', '.join(missing)}",
            code="missing_form_fields",
        )

    known = {f.get('field_name') for f in fields}
    return {key: value for key, value in form_data.items() if key in known}


def _pick_option(value, offered, label):
    """Merchandise selections must be one of the offered options (when there are any)."""
    value = sanitize_text(value, max_length=64) or None
    if not offered:
        return None
    if value is None:
        raise ValidationError(f"Please select a {label}", code="selection_required")
    if value not in offered:
        raise ValidationError(f"Invalid {label}: {value}", code="invalid_selection")
    return value


def register_for_event(event_id, user, quantity=None, selected_size=None, selected_color=None,
                       selected_variant=None, custom_form_data=None) -> Registration:
    require_participant(user, "register for events")

    event = get_event_or_404(event_id)
    require_open_event(event, 'register')
    require_eligible(user, event)

    if event.team_based:
        raise ValidationError("This event requires team registration", code="team_registration_required")

    fields = {'quantity': 1, 'custom_form_data': {}}
    if event.is_merchandise:
        qty = validate_int(1 if quantity in (None, "") else quantity, "Quantity", min_value=1)
        if qty > event.purchase_limit_per_participant:
            raise ValidationError(
                f"Maximum {event.purchase_limit_per_participant} items per person",
                code="purchase_limit_exceeded",
            )
        fields.update(
            quantity=qty,
            selected_size=_pick_option(selected_size, event.item_sizes, "size"),
            selected_color=_pick_option(selected_color, event.item_colors, "color"),
            selected_variant=_pick_option(selected_variant, event.item_variants, "variant"),
        )
    else:
        fields['custom_form_data'] = validate_custom_form(event, custom_form_data)

    try:
        with transaction.atomic():
            if EventPolicy.has_confirmed_registration(user, event):
                raise ConflictError("You are already registered for this event", code="already_registered")

            if not CapacityLedger.try_reserve(event.id, 1):
                raise ConflictError("Registration limit reached", code="capacity_exceeded")

            if event.is_merchandise and not CapacityLedger.try_take_stock(event.id, fields['quantity']):
                raise ConflictError("Insufficient stock", code="insufficient_stock")

            reg = Registration.objects.create(
                event=event,
                user=user,
                ticket_id=new_ticket_id(),
                event_type=event.event_type,
                status=Registration.STATUS_CONFIRMED,
                **fields,
            )
            CapacityLedger.lock_form(event.id)

            ActivityService.log_activity(
                actor=user,
                verb=ACTIVITY_REGISTRATION_CREATED,
                target=reg,
                event=event,
                metadata={'ticket_id': reg.ticket_id, 'quantity': reg.quantity},
            )
            transaction.on_commit(lambda: dispatch_ticket_notifications([reg.id]))
    except IntegrityError as e:
        logger.warning(f"Registration conflict: user={user.id}, event={event.id}: {e}")
        raise integrity_conflict(user, event)

    logger.info(f"Registration created: user={user.id}, event={event.id}, ticket={reg.ticket_id}")
    return reg


def cancel_registration(ticket_id, user) -> dict:
    """
    Cancel the caller's ticket.

    A ticket that belongs to a live team is cancelled by leaving that team,
    so the team and the ledger stay consistent with the roster.
    """
    reg = (
        Registration.objects
        .filter(ticket_id=ticket_id, user=user)
        .select_related('event')
        .first()
    )
    if reg is None:
        raise NotFoundError("Registration not found", code="registration_not_found")

    with transaction.atomic():
        team = None
        if reg.team_id:
            team = Team.objects.select_for_update().filter(pk=reg.team_id).first()

        reg = Registration.objects.select_for_update().get(pk=reg.pk)

        if reg.status == Registration.STATUS_CANCELLED:
            return {"message": "Registration already cancelled", "cancelled_registrations": 0}
        if reg.status == Registration.STATUS_COMPLETED:
            raise StateError("Cannot cancel a completed registration", code="registration_completed")

        if (
            team is not None
            and team.status != Team.STATUS_CANCELLED
            and team.memberships.filter(user=user, status=TeamMember.STATUS_ACTIVE).exists()
        ):
            result = leave_locked_team(team, user)
            return {
                "message": result.message,
                "cancelled_registrations": result.cancelled_registrations,
                "branch": result.branch,
            }

        cancelled = (
            Registration.objects
            .filter(pk=reg.pk, status=Registration.STATUS_CONFIRMED)
            .update(status=Registration.STATUS_CANCELLED, cancelled_at=timezone.now())
        )
        if cancelled:
            CapacityLedger.release(reg.event_id, 1)
            if reg.event_type == Event.TYPE_MERCHANDISE:
                CapacityLedger.restock(reg.event_id, reg.quantity)

            ActivityService.log_activity(
                actor=user,
                verb=ACTIVITY_REGISTRATION_CANCELED,
                target=reg,
                event=reg.event,
                metadata={'ticket_id': reg.ticket_id},
            )

    logger.info(f"Registration cancelled: user={user.id}, ticket={reg.ticket_id}")
    return {"message": "Registration cancelled successfully", "cancelled_registrations": cancelled}


def get_ticket(ticket_id, user) -> Registration:
    reg = (
        Registration.objects
        .filter(ticket_id=ticket_id)
        .select_related('event', 'user', 'team')
        .first()
    )
    if reg is None:
        raise NotFoundError("Ticket not found", code="ticket_not_found")
    if not EventPolicy.can_view_ticket(user, reg):
        raise PermissionDeniedError("You do not have access to this ticket", code="ticket_forbidden")
    return reg
