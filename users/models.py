# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    ROLE_STUDENT = "student"
    ROLE_ORGANIZER = "organizer"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_STUDENT, 'Student'),
        (ROLE_ORGANIZER, 'Organizer'),
        (ROLE_ADMIN, 'Admin'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_STUDENT
    )

    # Supabase auth user id ("sub" claim); null for local/admin accounts
    supabase_id = models.UUIDField(unique=True, null=True, blank=True)

    avatar_url = models.CharField(max_length=1024, blank=True, null=True)

    @property
    def is_event_admin(self):
        """Admins and superusers may manage any event's form and participants."""
        return self.is_superuser or self.role == self.ROLE_ADMIN

    @property
    def display_name(self):
        full_name = self.get_full_name()
        return full_name or self.username

    def __str__(self):
        return self.username
