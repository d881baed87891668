# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_ADMIN = "admin"
    ROLE_ORGANIZER = "organizer"
    ROLE_IIIT_STUDENT = "iiit-student"
    ROLE_NON_IIIT_STUDENT = "non-iiit-student"

    ROLE_CHOICES = (
        (ROLE_ADMIN, 'Admin'),
        (ROLE_ORGANIZER, 'Organizer'),
        (ROLE_IIIT_STUDENT, 'IIIT Student'),
        (ROLE_NON_IIIT_STUDENT, 'Non-IIIT Student'),
    )

    PARTICIPANT_ROLES = (ROLE_IIIT_STUDENT, ROLE_NON_IIIT_STUDENT)

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_NON_IIIT_STUDENT,
    )

    college_name = models.CharField(max_length=255, blank=True, null=True)
    contact_number = models.CharField(max_length=20, blank=True, null=True)
    interests = models.JSONField(default=list, blank=True, help_text="Areas of interest")
    onboarding_complete = models.BooleanField(default=False)

    # Organizer profile (clubs / councils provisioned by an admin)
    organization_name = models.CharField(max_length=255, blank=True, null=True)
    contact_email = models.EmailField(blank=True, null=True)

    @property
    def is_participant(self):
        return self.role in self.PARTICIPANT_ROLES

    @property
    def display_name(self):
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username

    def __str__(self):
        return self.username
