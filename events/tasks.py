# events/tasks.py

from celery import shared_task

from .emails import notify_ticket_issued


@shared_task
def send_ticket_email_task(registration_id: int):
    """
    Async wrapper for the ticket confirmation email.

    notify_ticket_issued already logs and swallows delivery errors,
    so a bad mailbox never crashes the worker.
    """
    return notify_ticket_issued(registration_id)
