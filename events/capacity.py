# events/capacity.py
"""
Capacity ledger for events.

Event.current_registrations and Event.stock_quantity are shared by every
team and participant registering for the same event. They are only ever
changed here, and only through single conditional UPDATE statements, so
the check and the write happen in one step inside the database. Nothing
in this module reads a counter and writes it back from Python.
"""
import logging

from django.db.models import F, PositiveIntegerField
from django.db.models.functions import Greatest

from .models import Event

logger = logging.getLogger('eventhub.capacity')


class CapacityLedger:

    @staticmethod
    def try_reserve(event_id: int, n: int) -> bool:
        """
        Claim `n` registration slots if they fit under the limit.

        Returns False (and changes nothing) when the event would be oversold.
        """
        if n <= 0:
            return True

        updated = (
            Event.objects
            .filter(pk=event_id, current_registrations__lte=F("registration_limit") - n)
            .update(current_registrations=F("current_registrations") + n)
        )
        if updated:
            logger.info(f"Capacity reserved: event={event_id}, slots={n}")
            return True

        logger.warning(f"Capacity reservation refused: event={event_id}, slots={n}")
        return False

    @staticmethod
    def release(event_id: int, n: int) -> None:
        """Give back `n` slots; the counter never drops below zero."""
        if n <= 0:
            return

        Event.objects.filter(pk=event_id).update(
            current_registrations=Greatest(F("current_registrations") - n, 0, output_field=PositiveIntegerField())
        )
        logger.info(f"Capacity released: event={event_id}, slots={n}")

    @staticmethod
    def try_take_stock(event_id: int, quantity: int) -> bool:
        """Decrement merchandise stock by `quantity` if enough is left."""
        if quantity <= 0:
            return True

        updated = (
            Event.objects
            .filter(pk=event_id, stock_quantity__gte=quantity)
            .update(stock_quantity=F("stock_quantity") - quantity)
        )
        if not updated:
            logger.warning(f"Stock reservation refused: event={event_id}, quantity={quantity}")
        return bool(updated)

    @staticmethod
    def restock(event_id: int, quantity: int) -> None:
        if quantity <= 0:
            return

        Event.objects.filter(pk=event_id).update(stock_quantity=F("stock_quantity") + quantity)
        logger.info(f"Stock restored: event={event_id}, quantity={quantity}")

    @staticmethod
    def lock_form(event_id: int) -> bool:
        """
        Freeze the custom registration form once tickets exist.

        Returns True only for the call that actually flipped the flag.
        """
        return bool(Event.objects.filter(pk=event_id, form_locked=False).update(form_locked=True))

    @staticmethod
    def snapshot(event_id: int) -> dict:
        """Current counter values straight from the database."""
        return (
            Event.objects
            .filter(pk=event_id)
            .values("registration_limit", "current_registrations", "stock_quantity")
            .get()
        )
