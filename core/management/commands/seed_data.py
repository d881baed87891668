from datetime import timedelta

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from events.models import Event, TeamMember
from events.services import teams as team_engine

User = get_user_model()


class Command(BaseCommand):
    help = "Seeds the database with an organizer, participants, events and a forming team"

    def add_arguments(self, parser):
        parser.add_argument("--password", default="password", help="Password for every seeded user")

    def handle(self, *args, **options):
        self.stdout.write("Seeding data...")
        password = options["password"]

        # 1. Ensure Users
        organizer = self._user("techclub", password, role=User.ROLE_ORGANIZER, organization_name="Tech Club")
        alice = self._user("alice", password, role=User.ROLE_IIIT_STUDENT)
        bob = self._user("bob", password, role=User.ROLE_IIIT_STUDENT)
        self._user("carol", password, role=User.ROLE_NON_IIIT_STUDENT)

        # 2. Events
        now = timezone.now()
        hackathon, _ = Event.objects.get_or_create(
            name="Hackathon: Build for Good",
            organizer=organizer,
            defaults={
                "description": "48-hour coding marathon to solve social issues.",
                "status": Event.STATUS_PUBLISHED,
                "published_at": now,
                "registration_deadline": now + timedelta(days=10),
                "start_time": now + timedelta(days=12),
                "end_time": now + timedelta(days=14),
                "registration_limit": 60,
                "team_based": True,
                "min_team_size": 2,
                "max_team_size": 4,
            },
        )
        Event.objects.get_or_create(
            name="Fest Hoodie",
            organizer=organizer,
            defaults={
                "event_type": Event.TYPE_MERCHANDISE,
                "status": Event.STATUS_PUBLISHED,
                "published_at": now,
                "registration_deadline": now + timedelta(days=20),
                "start_time": now + timedelta(days=21),
                "end_time": now + timedelta(days=21, hours=8),
                "registration_limit": 200,
                "item_sizes": ["S", "M", "L", "XL"],
                "item_colors": ["Black", "Navy"],
                "stock_quantity": 150,
                "purchase_limit_per_participant": 2,
            },
        )
        self.stdout.write(f"Events ready: {Event.objects.filter(organizer=organizer).count()}")

        # 3. A forming team so the invite flow can be tried right away
        if not TeamMember.objects.filter(event=hackathon, user=alice, status=TeamMember.STATUS_ACTIVE).exists():
            team = team_engine.create_team(hackathon.id, alice, "Null Pointers", 3)
            team_engine.join_team(team.invite_code, bob)
            self.stdout.write(f"Team '{team.team_name}' invite code: {team.invite_code}")

        self.stdout.write(self.style.SUCCESS("Seeding complete."))

    def _user(self, username, password, **defaults):
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com", **defaults},
        )
        if created:
            user.set_password(password)
            user.save()
        return user
