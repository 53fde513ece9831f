# events/services/registration.py
"""
Event registration / unregistration.

A registration touches up to five tables (form response, team, team
members, registration, event counter). Each call runs in one database
transaction, so any failure leaves no partial rows behind, and the
participant counter is moved with a single conditional UPDATE so the
capacity cannot be overbooked by concurrent requests.
"""
import logging

from django.db import transaction, IntegrityError, DatabaseError
from rest_framework import serializers
from rest_framework.exceptions import NotAuthenticated

from events import forms_schema, teams
from events.exceptions import (
    AlreadyRegistered,
    EventFull,
    EventNotFound,
    FormValidationError,
    InvalidInput,
    NotRegistered,
    RegistrationFailed,
    UnregisterFailed,
)
from events.models import Event, EventRegistration
from events.sanitizers import sanitize_single_line
from events.serializers import RegistrationRequestSerializer

logger = logging.getLogger("cos.events")

TEAM_ACTION_CREATE = "create"
TEAM_ACTION_JOIN = "join"


def first_error_message(errors) -> str:
    """Flatten DRF validation errors into the single message the client shows."""
    if isinstance(errors, dict):
        for field, value in errors.items():
            message = first_error_message(value)
            if not message:
                continue
            if field in ("non_field_errors", "detail"):
                return message
            return f"{field}: {message}"
        return ""
    if isinstance(errors, (list, tuple)):
        for value in errors:
            message = first_error_message(value)
            if message:
                return message
        return ""
    return str(errors)


class RegistrationService:
    """
    Registers `user` for events on their own behalf.

    `code_generator` produces team join codes; tests pass a deterministic one.
    """

    def __init__(self, user, code_generator=None):
        if user is None or not getattr(user, "is_authenticated", False):
            raise NotAuthenticated()
        self.user = user
        self.code_generator = code_generator or teams.generate_join_code

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------
    def register(self, event_id, data) -> EventRegistration:
        payload = self._validate_payload(data)
        participation_type = payload["participationType"]

        with transaction.atomic():
            event = Event.objects.select_for_update().filter(pk=event_id).first()
            if event is None:
                raise EventNotFound()

            if EventRegistration.objects.filter(event=event, user=self.user).exists():
                raise AlreadyRegistered()

            if not event.accepts(participation_type):
                raise InvalidInput(
                    f"This event does not accept {participation_type} registrations."
                )

            # Fast fail; the conditional increment below is what actually holds the line
            if event.is_full:
                logger.warning(f"Registration rejected, event full: event={event.id}, user={self.user.id}")
                raise EventFull()

            form_response = self._save_form_response(event, payload.get("formData"))

            team = None
            if participation_type == Event.PARTICIPATION_TEAM:
                team = self._handle_team(event, payload)

            registration = self._create_registration(event, team, form_response)

            if not Event.objects.increment_participants(event.id):
                logger.warning(f"Registration rejected at increment, event full: event={event.id}, user={self.user.id}")
                raise EventFull()

        logger.info(
            f"Registration created: user={self.user.id}, event={event.id}, "
            f"type={participation_type}, team={registration.team_id}"
        )
        return registration

    def _validate_payload(self, data):
        serializer = RegistrationRequestSerializer(data=data)
        try:
            serializer.is_valid(raise_exception=True)
        except serializers.ValidationError as e:
            raise InvalidInput(first_error_message(e.detail))
        return serializer.validated_data

    def _save_form_response(self, event, form_data):
        form = forms_schema.get_form(event.id)
        if form is None:
            # No form configured: answers, if any, have nowhere to go
            return None

        schema = forms_schema.parse_schema(form.schema)
        if form_data is None:
            if any(field["required"] for field in schema):
                raise FormValidationError("Please fill in the registration form.")
            return None

        answers = forms_schema.validate_response(schema, form_data)
        return forms_schema.save_response(form, self.user, answers)

    def _handle_team(self, event, payload):
        action = payload.get("teamAction")
        if action == TEAM_ACTION_CREATE:
            return self._create_team(event, payload)
        if action == TEAM_ACTION_JOIN:
            return self._join_team(event, payload)
        raise InvalidInput("Choose whether to create or join a team.")

    def _create_team(self, event, payload):
        name = sanitize_single_line(payload.get("teamName"), max_length=100)
        if not name:
            raise InvalidInput("Team name is required.")

        members = payload.get("members") or []
        teams.validate_team_size(
            len(members) + 1,
            event.effective_min_team_size,
            event.effective_max_team_size,
        )

        # All checks run before the first insert
        resolved = teams.resolve_members(members, self.user, event) if members else []

        team = teams.create_team(event, self.user, name, code_generator=self.code_generator)
        if resolved:
            teams.add_members(team, resolved)

        logger.info(f"Team created: team={team.id}, event={event.id}, leader={self.user.id}, members={len(resolved)}")
        return team

    def _join_team(self, event, payload):
        code = payload.get("teamCode")
        if not code or not code.strip():
            raise InvalidInput("Team code is required.")

        team = teams.lookup_by_code(code, event.id)
        teams.join_team(team, self.user, event.effective_max_team_size)

        logger.info(f"Team joined: team={team.id}, event={event.id}, user={self.user.id}")
        return team

    def _create_registration(self, event, team, form_response):
        try:
            with transaction.atomic():
                return EventRegistration.objects.create(
                    event=event,
                    user=self.user,
                    team=team,
                    form_response=form_response,
                )
        except IntegrityError:
            raise AlreadyRegistered()
        except DatabaseError as e:
            logger.warning(f"Registration insert failed: user={self.user.id}, event={event.id}: {e}")
            raise RegistrationFailed(f"Registration failed: {e}")

    # ------------------------------------------------------------------
    # Unregister
    # ------------------------------------------------------------------
    def _locked_registration(self, event_id):
        # Postgres refuses FOR UPDATE on the nullable side of the outer joins
        return (
            EventRegistration.objects
            .select_for_update(of=("self",))
            .select_related("team", "form_response")
            .filter(event_id=event_id, user=self.user)
        )

    def unregister(self, event_id) -> None:
        with transaction.atomic():
            registration = self._locked_registration(event_id).first()
            if registration is None:
                raise NotRegistered()

            team_deleted = False
            if registration.team_id:
                team_deleted = teams.leave_team(registration.team, self.user)

            form_response = registration.form_response
            try:
                with transaction.atomic():
                    registration.delete()
                    if form_response is not None:
                        form_response.delete()
            except DatabaseError as e:
                logger.warning(f"Unregister failed: user={self.user.id}, event={event_id}: {e}")
                raise UnregisterFailed(f"Failed to cancel registration: {e}")

            Event.objects.decrement_participants(event_id)

        logger.info(
            f"Registration canceled: user={self.user.id}, event={event_id}, "
            f"team_deleted={team_deleted}"
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def status(self, event_id):
        return (
            EventRegistration.objects
            .select_related("team", "team__leader")
            .filter(event_id=event_id, user=self.user)
            .first()
        )
