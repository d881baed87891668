import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[("normal", "Normal"), ("merchandise", "Merchandise")],
                        default="normal",
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("ongoing", "Ongoing"),
                            ("completed", "Completed"),
                            ("closed", "Closed"),
                        ],
                        default="draft",
                        max_length=32,
                    ),
                ),
                (
                    "eligibility",
                    models.CharField(
                        choices=[("all", "Everyone"), ("iiit", "IIIT Students"), ("non_iiit", "Non-IIIT Students")],
                        default="all",
                        max_length=16,
                    ),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                ("registration_deadline", models.DateTimeField()),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("registration_limit", models.PositiveIntegerField()),
                ("current_registrations", models.PositiveIntegerField(default=0)),
                ("registration_fee", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("team_based", models.BooleanField(default=False)),
                ("min_team_size", models.PositiveIntegerField(default=2)),
                ("max_team_size", models.PositiveIntegerField(default=4)),
                (
                    "custom_form",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="List of {field_name, field_type, required, options}",
                    ),
                ),
                ("form_locked", models.BooleanField(default=False)),
                ("item_sizes", models.JSONField(blank=True, default=list)),
                ("item_colors", models.JSONField(blank=True, default=list)),
                ("item_variants", models.JSONField(blank=True, default=list)),
                ("stock_quantity", models.PositiveIntegerField(default=0)),
                ("purchase_limit_per_participant", models.PositiveIntegerField(default=1)),
                ("published_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="organized_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organizer", "start_time"], name="event_org_start_idx"),
                    models.Index(fields=["status", "registration_deadline"], name="event_status_deadline_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_registrations__lte", models.F("registration_limit"))),
                        name="event_registrations_within_limit",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("min_team_size__lte", models.F("max_team_size"))),
                        name="event_team_bounds_ordered",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("team_name", models.CharField(max_length=100)),
                ("max_size", models.PositiveIntegerField()),
                ("invite_code", models.CharField(max_length=16, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("forming", "Forming"), ("complete", "Complete"), ("cancelled", "Cancelled")],
                        default="forming",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="teams",
                        to="events.event",
                    ),
                ),
                (
                    "leader",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="led_teams",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["event", "status"], name="team_event_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_size__gte", 2)),
                        name="team_max_size_at_least_two",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TeamMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "role",
                    models.CharField(
                        choices=[("leader", "Team Leader"), ("member", "Member")],
                        default="member",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("left", "Left"), ("disbanded", "Disbanded")],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                ("left_at", models.DateTimeField(blank=True, null=True)),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="events.team",
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["team", "status"], name="teammember_team_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "active")),
                        fields=("event", "user"),
                        name="one_active_team_per_event",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ticket_id", models.CharField(max_length=32, unique=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[("normal", "Normal"), ("merchandise", "Merchandise")],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("confirmed", "Confirmed"), ("cancelled", "Cancelled"), ("completed", "Completed")],
                        default="confirmed",
                        max_length=16,
                    ),
                ),
                ("team_name", models.CharField(blank=True, max_length=100, null=True)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("selected_size", models.CharField(blank=True, max_length=32, null=True)),
                ("selected_color", models.CharField(blank=True, max_length=32, null=True)),
                ("selected_variant", models.CharField(blank=True, max_length=64, null=True)),
                (
                    "custom_form_data",
                    models.JSONField(blank=True, default=dict, help_text="Answers to event-specific questions"),
                ),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registrations",
                        to="events.team",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "status"], name="reg_event_status_idx"),
                    models.Index(fields=["team", "status"], name="reg_team_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "confirmed")),
                        fields=("event", "user"),
                        name="one_confirmed_registration_per_event",
                    ),
                ],
            },
        ),
    ]
