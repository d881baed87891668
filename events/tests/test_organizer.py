from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from core.models import DomainActivity
from events.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from events.models import Event, Registration
from events.services import attendance as attendance_service
from events.services import organizer as organizer_service
from events.services import registrations as registration_service
from users.models import User
from .helpers import make_event, make_user


FORM = [
    {"field_name": "github", "field_type": "text", "required": True},
    {"field_name": "track", "field_type": "select", "required": True, "options": ["AI", "Web"]},
]


class CustomFormTests(TestCase):
    def setUp(self):
        self.organizer = make_user("organizer", role="organizer")
        self.other_organizer = make_user("rival", role="organizer")
        self.alice = make_user("alice")
        self.event = make_event(self.organizer, team_based=False)

    def test_organizer_sets_form_before_registrations(self):
        event = organizer_service.update_custom_form(self.event.id, self.organizer, FORM)

        self.assertEqual(
            event.custom_form,
            [
                {"field_name": "github", "field_type": "text", "required": True, "options": []},
                {"field_name": "track", "field_type": "select", "required": True, "options": ["AI", "Web"]},
            ],
        )
        self.assertTrue(DomainActivity.objects.filter(verb="event.form_updated").exists())

    def test_form_is_locked_after_first_registration(self):
        registration_service.register_for_event(self.event.id, self.alice)

        with self.assertRaises(StateError) as ctx:
            organizer_service.update_custom_form(self.event.id, self.organizer, FORM)

        self.assertEqual(ctx.exception.get_codes(), "form_locked")
        self.event.refresh_from_db()
        self.assertEqual(self.event.custom_form, [])

    def test_only_the_organizer_edits_the_form(self):
        with self.assertRaises(PermissionDeniedError):
            organizer_service.update_custom_form(self.event.id, self.other_organizer, FORM)
        with self.assertRaises(PermissionDeniedError):
            organizer_service.update_custom_form(self.event.id, self.alice, FORM)

    def test_option_fields_need_options(self):
        with self.assertRaises(ValidationError):
            organizer_service.update_custom_form(
                self.event.id,
                self.organizer,
                [{"field_name": "track", "field_type": "select", "required": True}],
            )

    def test_duplicate_field_names_rejected(self):
        with self.assertRaises(ValidationError):
            organizer_service.update_custom_form(
                self.event.id,
                self.organizer,
                [
                    {"field_name": "github", "field_type": "text"},
                    {"field_name": "github", "field_type": "email"},
                ],
            )

    def test_unknown_event(self):
        with self.assertRaises(NotFoundError):
            organizer_service.update_custom_form(999999, self.organizer, FORM)


class AttendanceTestCase(TestCase):
    def setUp(self):
        self.organizer = make_user("organizer", role="organizer")
        self.alice = make_user("alice", first_name="Alice", last_name="Liddell")
        self.ivy = make_user("ivy", role=User.ROLE_IIIT_STUDENT)
        self.bob = make_user("bob")
        self.event = make_event(self.organizer, team_based=False, registration_limit=10)

        self.alice_reg = registration_service.register_for_event(self.event.id, self.alice)
        self.ivy_reg = registration_service.register_for_event(self.event.id, self.ivy)
        self.bob_reg = registration_service.register_for_event(self.event.id, self.bob)
        registration_service.cancel_registration(self.bob_reg.ticket_id, self.bob)


class ScanTicketTests(AttendanceTestCase):

    def test_scan_marks_attendance(self):
        reg = attendance_service.scan_ticket(self.event.id, self.organizer, self.alice_reg.ticket_id)

        self.assertTrue(reg.attendance)
        self.assertEqual(reg.attendance_method, Registration.ATTENDANCE_QR_SCAN)
        self.assertIsNotNone(reg.attendance_marked_at)
        self.assertTrue(DomainActivity.objects.filter(verb="attendance.marked", object_id=reg.id).exists())

    def test_second_scan_is_rejected(self):
        attendance_service.scan_ticket(self.event.id, self.organizer, self.alice_reg.ticket_id)

        with self.assertRaises(ConflictError) as ctx:
            attendance_service.scan_ticket(self.event.id, self.organizer, self.alice_reg.ticket_id)
        self.assertEqual(ctx.exception.get_codes(), "duplicate_scan")
        self.assertIn("Already scanned at", str(ctx.exception.detail))

    def test_cancelled_ticket_is_not_admitted(self):
        with self.assertRaises(StateError) as ctx:
            attendance_service.scan_ticket(self.event.id, self.organizer, self.bob_reg.ticket_id)
        self.assertEqual(ctx.exception.get_codes(), "registration_cancelled")

        self.bob_reg.refresh_from_db()
        self.assertFalse(self.bob_reg.attendance)

    def test_qr_for_another_event(self):
        with self.assertRaises(ValidationError) as ctx:
            attendance_service.scan_ticket(
                self.event.id, self.organizer, self.alice_reg.ticket_id, qr_event_id=self.event.id + 1
            )
        self.assertEqual(ctx.exception.get_codes(), "wrong_event")

    def test_ticket_of_another_event_is_invalid_here(self):
        other = make_event(self.organizer, name="Other", team_based=False)
        carol_reg = registration_service.register_for_event(other.id, make_user("carol"))

        with self.assertRaises(NotFoundError):
            attendance_service.scan_ticket(self.event.id, self.organizer, carol_reg.ticket_id)
        with self.assertRaises(NotFoundError):
            attendance_service.scan_ticket(self.event.id, self.organizer, "TKT-000000000000")

    def test_only_the_organizer_scans(self):
        with self.assertRaises(PermissionDeniedError):
            attendance_service.scan_ticket(self.event.id, self.ivy, self.alice_reg.ticket_id)
        with self.assertRaises(PermissionDeniedError):
            attendance_service.scan_ticket(self.event.id, make_user("rival", role="organizer"), self.alice_reg.ticket_id)


class ManualAttendanceTests(AttendanceTestCase):

    def test_mark_and_clear(self):
        reg = attendance_service.set_attendance(
            self.event.id, self.organizer, self.alice_reg.id, attended=True, reason="QR would not scan"
        )
        self.assertTrue(reg.attendance)
        self.assertEqual(reg.attendance_method, Registration.ATTENDANCE_MANUAL)
        activity = DomainActivity.objects.get(verb="attendance.marked", object_id=reg.id)
        self.assertEqual(activity.metadata["reason"], "QR would not scan")

        reg = attendance_service.set_attendance(self.event.id, self.organizer, self.alice_reg.id, attended=False)
        self.assertFalse(reg.attendance)
        self.assertIsNone(reg.attendance_marked_at)
        self.assertTrue(DomainActivity.objects.filter(verb="attendance.cleared", object_id=reg.id).exists())

    def test_marking_twice_keeps_first_timestamp(self):
        first = attendance_service.set_attendance(self.event.id, self.organizer, self.alice_reg.id)
        second = attendance_service.set_attendance(self.event.id, self.organizer, self.alice_reg.id)

        self.assertEqual(first.attendance_marked_at, second.attendance_marked_at)
        self.assertEqual(DomainActivity.objects.filter(verb="attendance.marked").count(), 1)

    def test_cancelled_registration_rejected(self):
        with self.assertRaises(StateError):
            attendance_service.set_attendance(self.event.id, self.organizer, self.bob_reg.id)

    def test_registration_must_belong_to_event(self):
        other = make_event(self.organizer, name="Other", team_based=False)
        with self.assertRaises(NotFoundError):
            attendance_service.set_attendance(other.id, self.organizer, self.alice_reg.id)

    def test_participant_cannot_mark(self):
        with self.assertRaises(PermissionDeniedError):
            attendance_service.set_attendance(self.event.id, self.alice, self.alice_reg.id)


class AttendanceReportTests(AttendanceTestCase):

    def test_stats_split_scanned_and_not_scanned(self):
        attendance_service.scan_ticket(self.event.id, self.organizer, self.alice_reg.ticket_id)

        stats = attendance_service.attendance_stats(self.event.id, self.organizer)

        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["scanned"], 1)
        self.assertEqual(stats["not_scanned"], 1)
        self.assertEqual([r.id for r in stats["scanned_list"]], [self.alice_reg.id])
        self.assertEqual([r.id for r in stats["not_scanned_list"]], [self.ivy_reg.id])

    def test_participant_filters(self):
        attendance_service.scan_ticket(self.event.id, self.organizer, self.alice_reg.ticket_id)

        def ids(**filters):
            return [r.id for r in attendance_service.list_participants(self.event.id, self.organizer, **filters)]

        self.assertEqual(ids(), [self.alice_reg.id, self.ivy_reg.id, self.bob_reg.id])
        self.assertEqual(ids(status=Registration.STATUS_CANCELLED), [self.bob_reg.id])
        self.assertEqual(ids(attendance=True), [self.alice_reg.id])
        self.assertEqual(ids(institution="iiit"), [self.ivy_reg.id])
        self.assertEqual(ids(search="liddell"), [self.alice_reg.id])
        self.assertEqual(ids(search=self.ivy_reg.ticket_id.lower()), [self.ivy_reg.id])

    def test_invalid_filter(self):
        with self.assertRaises(ValidationError):
            attendance_service.list_participants(self.event.id, self.organizer, status="refunded")
        with self.assertRaises(ValidationError):
            attendance_service.list_participants(self.event.id, self.organizer, institution="mit")

    def test_completing_event_completes_attended_tickets(self):
        attendance_service.scan_ticket(self.event.id, self.organizer, self.alice_reg.ticket_id)

        organizer_service.change_event_status(self.event.id, self.organizer, Event.STATUS_COMPLETED)

        self.alice_reg.refresh_from_db()
        self.ivy_reg.refresh_from_db()
        self.assertEqual(self.alice_reg.status, Registration.STATUS_COMPLETED)
        self.assertEqual(self.ivy_reg.status, Registration.STATUS_CONFIRMED)

        with self.assertRaises(StateError) as ctx:
            registration_service.cancel_registration(self.alice_reg.ticket_id, self.alice)
        self.assertEqual(ctx.exception.get_codes(), "registration_completed")

        stats = attendance_service.attendance_stats(self.event.id, self.organizer)
        self.assertEqual(stats["total"], 2)


class OrganizerAPITests(APITestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.organizer = make_user("organizer", role="organizer")
        self.alice = make_user("alice")
        self.event = make_event(self.organizer, team_based=False)

    def test_form_update_then_locked(self):
        self.client.force_authenticate(self.organizer)
        res = self.client.put(reverse("event-form", args=[self.event.id]), {"custom_form": FORM}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data["event"]["custom_form"]), 2)

        self.client.force_authenticate(self.alice)
        res = self.client.post(
            reverse("event-register", args=[self.event.id]),
            {"custom_form_data": {"github": "alice", "track": "AI"}},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)

        self.client.force_authenticate(self.organizer)
        res = self.client.put(reverse("event-form", args=[self.event.id]), {"custom_form": []}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["errors"]["code"], "form_locked")
        self.assertEqual(res.data["errors"]["detail"], "Form is locked after first registration")

    def test_scan_and_stats(self):
        reg = registration_service.register_for_event(self.event.id, self.alice)
        self.client.force_authenticate(self.organizer)

        res = self.client.post(
            reverse("event-attendance-scan", args=[self.event.id]),
            {"ticket_id": reg.ticket_id, "event_id": str(self.event.id)},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["participant"]["ticket_id"], reg.ticket_id)
        self.assertTrue(res.data["participant"]["attendance"])

        res = self.client.post(
            reverse("event-attendance-scan", args=[self.event.id]),
            {"ticket_id": reg.ticket_id},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["errors"]["code"], "duplicate_scan")

        res = self.client.get(reverse("event-attendance", args=[self.event.id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["scanned"], 1)
        self.assertEqual(res.data["scanned_list"][0]["user"]["username"], "alice")

    def test_manual_mark(self):
        reg = registration_service.register_for_event(self.event.id, self.alice)
        self.client.force_authenticate(self.organizer)

        res = self.client.post(
            reverse("event-attendance-mark", args=[self.event.id, reg.id]),
            {"attended": True, "reason": "Lost phone"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["participant"]["attendance_method"], Registration.ATTENDANCE_MANUAL)

    def test_participants_list(self):
        registration_service.register_for_event(self.event.id, self.alice)
        self.client.force_authenticate(self.organizer)

        res = self.client.get(reverse("event-participants", args=[self.event.id]), {"attendance": "false"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data["participants"]), 1)

        res = self.client.get(reverse("event-participants", args=[self.event.id]), {"attendance": "maybe"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_participant_cannot_view_participants(self):
        self.client.force_authenticate(self.alice)
        res = self.client.get(reverse("event-participants", args=[self.event.id]))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
