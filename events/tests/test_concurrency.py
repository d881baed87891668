import threading
import unittest

from django.db import connection, connections
from django.test import TransactionTestCase

from events.exceptions import ConflictError
from events.models import Event, Registration, Team
from events.services import teams as team_engine
from .helpers import make_event, make_user


def run_together(*calls):
    """
    Start every call at the same instant, each on its own thread and
    database connection. Returns one (result, exception) pair per call.
    """
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, func):
        try:
            barrier.wait()
            outcomes[index] = (func(), None)
        except Exception as exc:
            outcomes[index] = (None, exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=worker, args=(i, func)) for i, func in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    return outcomes


@unittest.skipUnless(connection.vendor == "postgresql", "row locks need PostgreSQL")
class ConcurrentJoinTests(TransactionTestCase):
    """Joins racing on separate connections; SQLite serializes whole transactions instead."""

    def setUp(self):
        self.organizer = make_user("organizer", role="organizer")

    def test_two_teams_racing_for_the_last_slots(self):
        event = make_event(self.organizer, registration_limit=3)
        first = team_engine.create_team(event.id, make_user("lead1"), "Race Condition", 2)
        second = team_engine.create_team(event.id, make_user("lead2"), "Deadlock", 2)
        p, q = make_user("p"), make_user("q")

        outcomes = run_together(
            lambda: team_engine.join_team(first.invite_code, p),
            lambda: team_engine.join_team(second.invite_code, q),
        )

        errors = [exc for _, exc in outcomes if exc is not None]
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], ConflictError)
        self.assertEqual(errors[0].get_codes(), "capacity_exceeded")

        self.assertEqual(Event.objects.get(pk=event.pk).current_registrations, 2)
        self.assertEqual(Team.objects.filter(event=event, status=Team.STATUS_COMPLETE).count(), 1)
        self.assertEqual(Team.objects.filter(event=event, status=Team.STATUS_FORMING).count(), 1)
        self.assertEqual(Registration.objects.filter(event=event, status=Registration.STATUS_CONFIRMED).count(), 2)

    def test_two_joiners_racing_for_the_last_spot(self):
        event = make_event(self.organizer, registration_limit=10)
        team = team_engine.create_team(event.id, make_user("lead"), "Heisenbug", 3)
        team_engine.join_team(team.invite_code, make_user("early"))
        p, q = make_user("p"), make_user("q")

        outcomes = run_together(
            lambda: team_engine.join_team(team.invite_code, p),
            lambda: team_engine.join_team(team.invite_code, q),
        )

        results = [res for res, exc in outcomes if exc is None]
        errors = [exc for _, exc in outcomes if exc is not None]
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].team_complete)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].get_codes(), "team_full")

        team.refresh_from_db()
        self.assertEqual(team.status, Team.STATUS_COMPLETE)
        self.assertEqual(team.current_size, 3)
        self.assertEqual(Event.objects.get(pk=event.pk).current_registrations, 3)
