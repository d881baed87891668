from django.db import IntegrityError, transaction
from django.test import TestCase

from events.capacity import CapacityLedger
from events.models import Event
from .helpers import make_event, make_user


class CapacityLedgerTests(TestCase):
    def setUp(self):
        self.organizer = make_user("organizer", role="organizer")
        self.event = make_event(self.organizer, registration_limit=5)

    def _current(self):
        return Event.objects.values_list("current_registrations", flat=True).get(pk=self.event.pk)

    def test_reserve_increments_counter(self):
        self.assertTrue(CapacityLedger.try_reserve(self.event.id, 3))
        self.assertEqual(self._current(), 3)

    def test_reserve_can_fill_exactly_to_limit(self):
        self.assertTrue(CapacityLedger.try_reserve(self.event.id, 3))
        self.assertTrue(CapacityLedger.try_reserve(self.event.id, 2))
        self.assertEqual(self._current(), 5)

    def test_reserve_refuses_overflow_and_changes_nothing(self):
        self.assertTrue(CapacityLedger.try_reserve(self.event.id, 4))
        self.assertFalse(CapacityLedger.try_reserve(self.event.id, 2))
        self.assertEqual(self._current(), 4)

    def test_reserve_zero_is_a_noop(self):
        self.assertTrue(CapacityLedger.try_reserve(self.event.id, 0))
        self.assertEqual(self._current(), 0)

    def test_reserve_ignores_stale_in_memory_event(self):
        stale = Event.objects.get(pk=self.event.pk)
        self.assertTrue(CapacityLedger.try_reserve(self.event.id, 5))

        # The stale copy still believes the event is empty
        self.assertEqual(stale.current_registrations, 0)
        self.assertFalse(CapacityLedger.try_reserve(stale.id, 1))
        self.assertEqual(self._current(), 5)

    def test_release_floors_at_zero(self):
        CapacityLedger.try_reserve(self.event.id, 2)
        CapacityLedger.release(self.event.id, 1)
        self.assertEqual(self._current(), 1)

        CapacityLedger.release(self.event.id, 10)
        self.assertEqual(self._current(), 0)

    def test_stock_pair(self):
        merch = make_event(
            self.organizer,
            name="Hoodie",
            event_type=Event.TYPE_MERCHANDISE,
            team_based=False,
            stock_quantity=3,
        )
        self.assertTrue(CapacityLedger.try_take_stock(merch.id, 2))
        self.assertFalse(CapacityLedger.try_take_stock(merch.id, 2))

        CapacityLedger.restock(merch.id, 2)
        self.assertEqual(CapacityLedger.snapshot(merch.id)["stock_quantity"], 3)

    def test_lock_form_flips_once(self):
        self.assertTrue(CapacityLedger.lock_form(self.event.id))
        self.assertFalse(CapacityLedger.lock_form(self.event.id))
        self.event.refresh_from_db()
        self.assertTrue(self.event.form_locked)

    def test_storage_rejects_counter_above_limit(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Event.objects.filter(pk=self.event.pk).update(current_registrations=6)
