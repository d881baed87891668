from unittest.mock import patch

from django.core.cache import cache
from django.urls import reverse

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from core.models import DomainActivity
from events.models import Event, Registration, Team
from events.throttles import TeamJoinThrottle
from .helpers import make_event, make_user


class TeamAPITests(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()

        self.organizer = make_user("organizer", role="organizer")
        self.leader = make_user("leader")
        self.alice = make_user("alice")
        self.outsider = make_user("outsider")
        self.event = make_event(self.organizer, registration_limit=10)

    def _create_team(self, size=2, user=None):
        self.client.force_authenticate(user or self.leader)
        return self.client.post(
            reverse("team-create"),
            {"event_id": self.event.id, "team_name": "Kernel Panic", "max_size": size},
            format="json",
        )

    def test_requires_authentication(self):
        res = self.client.post(reverse("team-create"), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(res.data["success"])

    def test_create_team(self):
        res = self._create_team(size=3)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        team = res.data["team"]
        self.assertEqual(team["status"], Team.STATUS_FORMING)
        self.assertEqual(team["max_size"], 3)
        self.assertEqual(team["current_size"], 1)
        self.assertEqual(team["spots_remaining"], 2)
        self.assertEqual(team["leader"]["username"], "leader")
        self.assertEqual(len(team["invite_code"]), 8)

    def test_create_team_rejection_envelope(self):
        res = self._create_team(size=9)

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["success"], False)
        self.assertEqual(res.data["status_code"], 400)
        self.assertEqual(res.data["errors"]["code"], "team_size_out_of_bounds")
        self.assertEqual(res.data["errors"]["detail"], "Team size must be between 2 and 4")

    def test_create_team_missing_fields(self):
        self.client.force_authenticate(self.leader)
        res = self.client.post(reverse("team-create"), {"team_name": "x"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("event_id", res.data["errors"])

    def test_join_completes_team_and_returns_tickets(self):
        code = self._create_team(size=2).data["team"]["invite_code"]

        self.client.force_authenticate(self.alice)
        res = self.client.post(reverse("team-join"), {"invite_code": code}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["team_complete"])
        self.assertEqual(len(res.data["tickets"]), 2)
        self.assertEqual(res.data["team"]["status"], Team.STATUS_COMPLETE)
        self.assertEqual(Event.objects.get(pk=self.event.pk).current_registrations, 2)

    def test_partial_join_has_no_tickets_key(self):
        code = self._create_team(size=3).data["team"]["invite_code"]

        self.client.force_authenticate(self.alice)
        res = self.client.post(reverse("team-join"), {"invite_code": code}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["team_complete"])
        self.assertNotIn("tickets", res.data)

    def test_join_invalid_code(self):
        self.client.force_authenticate(self.alice)
        res = self.client.post(reverse("team-join"), {"invite_code": "DEADBEEF"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["errors"]["code"], "invalid_invite_code")

    def test_join_capacity_conflict(self):
        Event.objects.filter(pk=self.event.pk).update(registration_limit=1)
        code = self._create_team(size=2).data["team"]["invite_code"]

        self.client.force_authenticate(self.alice)
        res = self.client.post(reverse("team-join"), {"invite_code": code}, format="json")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["errors"]["detail"], "Event registration limit would be exceeded")
        self.assertEqual(Team.objects.get(invite_code=code).current_size, 1)

    def test_join_is_throttled(self):
        self.client.force_authenticate(self.alice)
        with patch.object(TeamJoinThrottle, "THROTTLE_RATES", {"team-join": "2/minute"}):
            for _ in range(2):
                res = self.client.post(reverse("team-join"), {"invite_code": "DEADBEEF"}, format="json")
                self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

            res = self.client.post(reverse("team-join"), {"invite_code": "DEADBEEF"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertFalse(res.data["success"])
        self.assertIn("Retry-After", res)

    def test_leave_endpoint(self):
        team_id = self._create_team(size=2).data["team"]["id"]

        res = self.client.post(reverse("team-leave", args=[team_id]))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["branch"], "disbanded")
        self.assertEqual(res.data["cancelled_registrations"], 0)
        self.assertTrue(DomainActivity.objects.filter(verb="team.disbanded").exists())

    def test_leave_not_member(self):
        team_id = self._create_team(size=2).data["team"]["id"]

        self.client.force_authenticate(self.outsider)
        res = self.client.post(reverse("team-leave", args=[team_id]))

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(res.data["errors"]["detail"], "You are not in this team")

    def test_my_team(self):
        code = self._create_team(size=2).data["team"]["invite_code"]
        self.client.force_authenticate(self.alice)
        self.client.post(reverse("team-join"), {"invite_code": code}, format="json")

        res = self.client.get(reverse("team-mine", args=[self.event.id]))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["team"]["team_name"], "Kernel Panic")
        self.assertEqual(len(res.data["team"]["members"]), 2)
        self.assertEqual(len(res.data["tickets"]), 2)

    def test_my_team_none(self):
        self.client.force_authenticate(self.alice)
        res = self.client.get(reverse("team-mine", args=[self.event.id]))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIsNone(res.data["team"])
        self.assertEqual(res.data["tickets"], [])

    def test_list_teams_hides_invite_code_from_outsiders(self):
        self._create_team(size=3)

        self.client.force_authenticate(self.outsider)
        res = self.client.get(reverse("event-team-list", args=[self.event.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data["teams"]), 1)
        self.assertIsNone(res.data["teams"][0]["invite_code"])

        self.client.force_authenticate(self.organizer)
        res = self.client.get(reverse("event-team-list", args=[self.event.id]))
        self.assertIsNotNone(res.data["teams"][0]["invite_code"])


class RegistrationAPITests(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.organizer = make_user("organizer", role="organizer")
        self.alice = make_user("alice")
        self.event = make_event(self.organizer, team_based=False, registration_limit=5)

    def test_register_cancel_and_view_ticket(self):
        self.client.force_authenticate(self.alice)

        res = self.client.post(reverse("event-register", args=[self.event.id]), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        ticket_id = res.data["registration"]["ticket_id"]

        res = self.client.get(reverse("ticket-detail", args=[ticket_id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["event"]["id"], self.event.id)

        res = self.client.post(reverse("ticket-cancel", args=[ticket_id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["cancelled_registrations"], 1)
        self.assertEqual(Registration.objects.get(ticket_id=ticket_id).status, Registration.STATUS_CANCELLED)

    def test_register_for_team_event_rejected(self):
        team_event = make_event(self.organizer)
        self.client.force_authenticate(self.alice)

        res = self.client.post(reverse("event-register", args=[team_event.id]), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["errors"]["code"], "team_registration_required")


class EventStatusAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.organizer = make_user("organizer", role="organizer")
        self.alice = make_user("alice")
        self.event = make_event(self.organizer, status=Event.STATUS_DRAFT)

    def test_organizer_publishes(self):
        self.client.force_authenticate(self.organizer)
        res = self.client.post(reverse("event-status", args=[self.event.id]), {"status": "published"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], Event.STATUS_PUBLISHED)
        self.assertTrue(DomainActivity.objects.filter(verb="event.status_changed").exists())

    def test_invalid_transition(self):
        self.client.force_authenticate(self.organizer)
        res = self.client.post(reverse("event-status", args=[self.event.id]), {"status": "completed"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["errors"]["code"], "invalid_transition")

    def test_participant_cannot_change_status(self):
        self.client.force_authenticate(self.alice)
        res = self.client.post(reverse("event-status", args=[self.event.id]), {"status": "published"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_shows_transitions_to_organizer(self):
        self.client.force_authenticate(self.organizer)
        res = self.client.get(reverse("event-detail", args=[self.event.id]))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["allowed_transitions"], [Event.STATUS_PUBLISHED])
