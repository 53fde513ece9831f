# events/exceptions.py
"""
Registration failure taxonomy.

Every failure in the register/unregister flow maps to exactly one of these,
so the client can tell "event is full" apart from "bad team code" even
though the message is what gets shown to the user.
"""
from rest_framework import status

from core.exceptions import DomainError


class RegistrationError(DomainError):
    pass


class InvalidInput(RegistrationError):
    code = "invalid_input"
    default_message = "Invalid registration request."


class FormValidationError(InvalidInput):
    default_message = "Registration form is incomplete."


class InvalidFormSchema(InvalidInput):
    default_message = "Invalid form schema."


class EventNotFound(RegistrationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Event not found"


class EventFull(RegistrationError):
    code = "event_full"
    default_message = "Event is full"


class FormResponseError(RegistrationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "form_response_error"
    default_message = "Failed to save form response"


class TeamSizeError(RegistrationError):
    code = "team_size_error"
    default_message = "Team size is out of range"


class MembersAlreadyRegistered(RegistrationError):
    code = "members_already_registered"
    default_message = "One or more team members are already registered for this event."

    def __init__(self, user_ids, message=None):
        self.user_ids = list(user_ids)
        super().__init__(message, user_ids=self.user_ids)


class InvalidTeamCode(RegistrationError):
    code = "invalid_team_code"
    default_message = "Invalid team code"


class AlreadyRegistered(RegistrationError):
    code = "already_registered"
    default_message = "You are already registered for this event"


class RegistrationFailed(RegistrationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "registration_failed"
    default_message = "Registration failed"


class NotRegistered(RegistrationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_registered"
    default_message = "Not registered"


class UnregisterFailed(RegistrationError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "unregister_failed"
    default_message = "Failed to cancel registration"


class Forbidden(RegistrationError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Forbidden"
