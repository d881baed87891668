# events/emails.py
import json
import logging
from urllib.parse import quote

from django.conf import settings
from django.core.mail import send_mail

from events.models import Registration

logger = logging.getLogger('eventhub.notifications')

QR_SERVICE_URL = "https://api.qrserver.com/v1/create-qr-code/?size=300x300&data="


def build_ticket_payload(registration):
    """
    Snapshot of everything the ticket email needs, taken from a registration.
    """
    user = registration.user
    event = registration.event

    payload = {
        "user_name": user.display_name,
        "event_name": event.name,
        "event_id": event.id,
        "event_type": event.event_type,
        "event_date": event.start_time,
        "ticket_id": registration.ticket_id,
        "user_id": user.id,
        "team_name": registration.team_name,
    }
    if event.is_merchandise:
        payload.update({
            "selected_size": registration.selected_size,
            "selected_color": registration.selected_color,
            "selected_variant": registration.selected_variant,
            "quantity": registration.quantity,
        })
    return payload


def build_qr_url(ticket_payload):
    data = json.dumps({
        "ticket_id": ticket_payload["ticket_id"],
        "event_id": ticket_payload["event_id"],
        "user_id": ticket_payload["user_id"],
    })
    return QR_SERVICE_URL + quote(data)


def send_ticket_email(recipient_email, ticket_payload):
    """
    Send the ticket confirmation to one participant.

    Raises whatever the mail backend raises; callers decide whether that matters.
    """
    is_purchase = ticket_payload["event_type"] == "merchandise"
    subject = f"Ticket Confirmation - {ticket_payload['event_name']}"

    lines = [
        f"Hi {ticket_payload['user_name']},",
        "",
        f"Your {'purchase' if is_purchase else 'registration'} for {ticket_payload['event_name']} has been confirmed.",
        "",
        f"  Ticket ID: {ticket_payload['ticket_id']}",
        f"  Event: {ticket_payload['event_name']}",
        f"  Event Date: {ticket_payload['event_date']}",
    ]
    if ticket_payload.get("team_name"):
        lines.append(f"  Team Name: {ticket_payload['team_name']}")
    for key, label in (
        ("selected_size", "Size"),
        ("selected_color", "Color"),
        ("selected_variant", "Variant"),
        ("quantity", "Quantity"),
    ):
        if ticket_payload.get(key):
            lines.append(f"  {label}: {ticket_payload[key]}")

    lines += [
        "",
        "Show this QR code at the venue:",
        build_qr_url(ticket_payload),
        "",
        "This is an automated email. Please do not reply to this message.",
    ]

    send_mail(
        subject=subject,
        message="\n".join(lines),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[recipient_email],
        fail_silently=False,
    )


def notify_ticket_issued(registration_id: int) -> bool:
    """
    Best-effort ticket email for one registration.

    Failures are logged and swallowed: a ticket is never rolled back
    because its email could not be delivered. Returns True if sent.
    """
    try:
        reg = Registration.objects.select_related("event", "user").get(id=registration_id)
    except Registration.DoesNotExist:
        logger.warning(f"Ticket email skipped: registration {registration_id} not found")
        return False

    if not getattr(reg.user, "email", None):
        return False

    try:
        send_ticket_email(reg.user.email, build_ticket_payload(reg))
    except Exception as e:
        logger.warning(f"Failed to send ticket email for registration {reg.id} ({reg.ticket_id}): {e}")
        return False

    logger.info(f"Ticket email sent: registration={reg.id}, ticket={reg.ticket_id}")
    return True


def dispatch_ticket_notifications(registration_ids):
    """
    Fan out ticket emails, either inline or through Celery.
    Meant to be called from transaction.on_commit.
    """
    if getattr(settings, "TICKET_EMAILS_ASYNC", False):
        from events.tasks import send_ticket_email_task

        for reg_id in registration_ids:
            try:
                send_ticket_email_task.delay(reg_id)
            except Exception as e:
                logger.warning(f"Could not queue ticket email for registration {reg_id}: {e}")
        return

    for reg_id in registration_ids:
        notify_ticket_issued(reg_id)
