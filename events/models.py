# events/models.py
from django.db import models
from django.db.models import F, Q
from django.conf import settings


class EventQuerySet(models.QuerySet):
    def increment_participants(self, event_id):
        """
        Claim one slot. Single conditional UPDATE, so concurrent registrants
        can never push participants_count past capacity. Returns False when full.
        """
        updated = self.filter(
            Q(capacity__isnull=True) | Q(participants_count__lt=F("capacity")),
            pk=event_id,
        ).update(participants_count=F("participants_count") + 1)
        return updated == 1

    def decrement_participants(self, event_id):
        updated = self.filter(pk=event_id, participants_count__gt=0).update(
            participants_count=F("participants_count") - 1
        )
        return updated == 1


class Event(models.Model):
    PARTICIPATION_SOLO = "solo"
    PARTICIPATION_TEAM = "team"
    PARTICIPATION_BOTH = "both"

    PARTICIPATION_CHOICES = [
        (PARTICIPATION_SOLO, "Solo"),
        (PARTICIPATION_TEAM, "Team"),
        (PARTICIPATION_BOTH, "Solo or Team"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organized_events'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(blank=True, null=True)
    location = models.CharField(max_length=255, blank=True, null=True)

    # Null capacity means unlimited
    capacity = models.PositiveIntegerField(blank=True, null=True)
    # Denormalized; only moved by Event.objects.increment/decrement_participants
    participants_count = models.PositiveIntegerField(default=0)

    participation_type = models.CharField(
        max_length=8,
        choices=PARTICIPATION_CHOICES,
        default=PARTICIPATION_SOLO,
    )
    min_team_size = models.PositiveIntegerField(blank=True, null=True)
    max_team_size = models.PositiveIntegerField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EventQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=['start_time'], name='event_start_idx'),
            models.Index(fields=['organizer', 'start_time'], name='event_org_start_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_full(self):
        return self.capacity is not None and self.participants_count >= self.capacity

    @property
    def spots_left(self):
        if self.capacity is None:
            return None
        return max(0, self.capacity - self.participants_count)

    @property
    def effective_min_team_size(self):
        return self.min_team_size or settings.EVENT_DEFAULT_MIN_TEAM_SIZE

    @property
    def effective_max_team_size(self):
        return self.max_team_size or settings.EVENT_DEFAULT_MAX_TEAM_SIZE

    def accepts(self, participation_type):
        if self.participation_type == self.PARTICIPATION_BOTH:
            return participation_type in (self.PARTICIPATION_SOLO, self.PARTICIPATION_TEAM)
        return participation_type == self.participation_type


class EventForm(models.Model):
    """
    Organizer-defined registration form for one event.

    `schema` is an ordered list of field dicts, see events.forms_schema.
    """
    event = models.OneToOneField(Event, on_delete=models.CASCADE, related_name="form")
    schema = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="event_forms",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Form for {self.event.title}"


class EventFormResponse(models.Model):
    form = models.ForeignKey(EventForm, on_delete=models.CASCADE, related_name="responses")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="event_form_responses",
    )
    response = models.JSONField(default=dict, blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["form", "submitted_at"], name="formresp_form_submitted_idx"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.form}"


class Team(models.Model):
    """
    Participant team for a team-based event.

    Created by the leader during registration; other participants attach
    their registration to it with the join `code`.
    """
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='teams')
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=16)
    leader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='led_teams',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "code"], name="team_event_code_uniq"),
            models.UniqueConstraint(fields=["event", "name"], name="team_event_name_uniq"),
        ]
        indexes = [
            models.Index(fields=['event', 'created_at'], name='team_event_created_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.event.title})"

    @property
    def size(self):
        # Leader is not stored as a TeamMember row
        return self.members.count() + 1


class TeamMember(models.Model):
    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_REJECTED, "Rejected"),
    ]

    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='team_memberships',
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, default="")
    role = models.CharField(max_length=64, blank=True, null=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)

    invited_at = models.DateTimeField(auto_now_add=True)
    joined_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["team", "user"], name="teammember_team_user_uniq"),
        ]
        indexes = [
            models.Index(fields=['team', 'invited_at'], name='teammember_team_invited_idx'),
        ]

    def __str__(self):
        return f"{self.name} in {self.team.name}"


class EventRegistration(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="event_registrations",
    )
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    team = models.ForeignKey(
        Team,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrations",
    )
    form_response = models.OneToOneField(
        EventFormResponse,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registration",
    )
    registered_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="registration_event_user_uniq"),
        ]
        indexes = [
            models.Index(fields=['event', 'registered_at'], name='reg_event_registered_idx'),
        ]

    def __str__(self):
        return f"{self.user} @ {self.event}"

    @property
    def participation_type(self):
        return Event.PARTICIPATION_TEAM if self.team_id else Event.PARTICIPATION_SOLO
