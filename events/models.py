# eventhub-backend/events/models.py
from django.db import models
from django.db.models import F, Q
from django.conf import settings


class Event(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_ONGOING = "ongoing"
    STATUS_COMPLETED = "completed"
    STATUS_CLOSED = "closed"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_ONGOING, "Ongoing"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CLOSED, "Closed"),
    ]

    # Statuses in which participants may register or form teams
    OPEN_STATUSES = (STATUS_PUBLISHED, STATUS_ONGOING)

    TYPE_NORMAL = "normal"
    TYPE_MERCHANDISE = "merchandise"

    TYPE_CHOICES = [
        (TYPE_NORMAL, "Normal"),
        (TYPE_MERCHANDISE, "Merchandise"),
    ]

    ELIGIBILITY_ALL = "all"
    ELIGIBILITY_IIIT = "iiit"
    ELIGIBILITY_NON_IIIT = "non_iiit"

    ELIGIBILITY_CHOICES = [
        (ELIGIBILITY_ALL, "Everyone"),
        (ELIGIBILITY_IIIT, "IIIT Students"),
        (ELIGIBILITY_NON_IIIT, "Non-IIIT Students"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organized_events'
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    event_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_NORMAL)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    eligibility = models.CharField(max_length=16, choices=ELIGIBILITY_CHOICES, default=ELIGIBILITY_ALL)
    tags = models.JSONField(default=list, blank=True)

    registration_deadline = models.DateTimeField()
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()

    # Capacity ledger. Only events.capacity.CapacityLedger writes these counters.
    registration_limit = models.PositiveIntegerField()
    current_registrations = models.PositiveIntegerField(default=0)
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    # Team registration
    team_based = models.BooleanField(default=False)
    min_team_size = models.PositiveIntegerField(default=2)
    max_team_size = models.PositiveIntegerField(default=4)

    # Organizer-defined registration questions, frozen after the first ticket
    custom_form = models.JSONField(default=list, blank=True, help_text="List of {field_name, field_type, required, options}")
    form_locked = models.BooleanField(default=False)

    # Merchandise details
    item_sizes = models.JSONField(default=list, blank=True)
    item_colors = models.JSONField(default=list, blank=True)
    item_variants = models.JSONField(default=list, blank=True)
    stock_quantity = models.PositiveIntegerField(default=0)
    purchase_limit_per_participant = models.PositiveIntegerField(default=1)

    published_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(current_registrations__lte=F("registration_limit")),
                name="event_registrations_within_limit",
            ),
            models.CheckConstraint(
                condition=Q(min_team_size__lte=F("max_team_size")),
                name="event_team_bounds_ordered",
            ),
        ]
        indexes = [
            models.Index(fields=['organizer', 'start_time'], name='event_org_start_idx'),
            models.Index(fields=['status', 'registration_deadline'], name='event_status_deadline_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def is_merchandise(self):
        return self.event_type == self.TYPE_MERCHANDISE

    @property
    def spots_left(self):
        return max(0, self.registration_limit - self.current_registrations)


class Team(models.Model):
    """
    A fixed-size group registering together for a team-based event.

    Tickets are only issued once the roster is full; the team then stays
    `complete` until a member leaves (back to `forming`) or the leader
    disbands it (`cancelled`, terminal).
    """
    STATUS_FORMING = "forming"
    STATUS_COMPLETE = "complete"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_FORMING, "Forming"),
        (STATUS_COMPLETE, "Complete"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='teams')
    team_name = models.CharField(max_length=100)
    leader = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='led_teams')
    max_size = models.PositiveIntegerField()
    invite_code = models.CharField(max_length=16, unique=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_FORMING)

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.CheckConstraint(condition=Q(max_size__gte=2), name="team_max_size_at_least_two"),
        ]
        indexes = [
            models.Index(fields=['event', 'status'], name='team_event_status_idx'),
        ]

    def __str__(self):
        return f"{self.team_name} ({self.event.name})"

    def roster(self):
        """
        Ordered memberships that make up the team right now (leader first).
        A cancelled team reports the members it had when it was disbanded.
        """
        wanted = (
            TeamMember.STATUS_DISBANDED
            if self.status == self.STATUS_CANCELLED
            else TeamMember.STATUS_ACTIVE
        )
        return self.memberships.filter(status=wanted).select_related('user').order_by('joined_at', 'id')

    @property
    def current_size(self):
        return self.memberships.filter(status=TeamMember.STATUS_ACTIVE).count()


class TeamMember(models.Model):
    ROLE_LEADER = "leader"
    ROLE_MEMBER = "member"

    ROLE_CHOICES = [
        (ROLE_LEADER, "Team Leader"),
        (ROLE_MEMBER, "Member"),
    ]

    STATUS_ACTIVE = "active"
    STATUS_LEFT = "left"
    STATUS_DISBANDED = "disbanded"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_LEFT, "Left"),
        (STATUS_DISBANDED, "Disbanded"),
    ]

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='memberships')
    # Denormalized so one-team-per-event can be a storage constraint
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='team_memberships')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='team_memberships')
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    joined_at = models.DateTimeField(auto_now_add=True)
    left_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'user'],
                condition=Q(status="active"),
                name="one_active_team_per_event",
            ),
        ]
        indexes = [
            models.Index(fields=['team', 'status'], name='teammember_team_status_idx'),
        ]

    def __str__(self):
        return f"{self.user.username} in {self.team.team_name}"


class Registration(models.Model):
    STATUS_CONFIRMED = "confirmed"
    STATUS_CANCELLED = "cancelled"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_COMPLETED, "Completed"),
    ]

    # Statuses that hold a seat (counted in attendance and participant lists)
    ACTIVE_STATUSES = (STATUS_CONFIRMED, STATUS_COMPLETED)

    ATTENDANCE_MANUAL = "manual"
    ATTENDANCE_QR_SCAN = "qr_scan"

    ATTENDANCE_METHOD_CHOICES = [
        (ATTENDANCE_MANUAL, "Manual"),
        (ATTENDANCE_QR_SCAN, "QR Scan"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='registrations')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='registrations')
    ticket_id = models.CharField(max_length=32, unique=True)
    event_type = models.CharField(max_length=32, choices=Event.TYPE_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CONFIRMED)

    team = models.ForeignKey(Team, on_delete=models.SET_NULL, null=True, blank=True, related_name='registrations')
    team_name = models.CharField(max_length=100, blank=True, null=True)

    # Merchandise selections
    quantity = models.PositiveIntegerField(default=1)
    selected_size = models.CharField(max_length=32, blank=True, null=True)
    selected_color = models.CharField(max_length=32, blank=True, null=True)
    selected_variant = models.CharField(max_length=64, blank=True, null=True)

    custom_form_data = models.JSONField(default=dict, blank=True, help_text="Answers to event-specific questions")

    # Check-in at the venue
    attendance = models.BooleanField(default=False)
    attendance_marked_at = models.DateTimeField(blank=True, null=True)
    attendance_method = models.CharField(max_length=16, choices=ATTENDANCE_METHOD_CHOICES, blank=True, null=True)

    registered_at = models.DateTimeField(auto_now_add=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'user'],
                condition=Q(status="confirmed"),
                name="one_confirmed_registration_per_event",
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'status'], name='reg_event_status_idx'),
            models.Index(fields=['team', 'status'], name='reg_team_status_idx'),
        ]

    def __str__(self):
        return f"{self.ticket_id} - {self.user.username} @ {self.event.name}"
