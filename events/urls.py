from django.urls import path
from .views import (
    RegisterEventView,
    EventRegistrationStatusView,
    EventParticipantsView,
    EventParticipantsExportView,
    EventFormView,
    TeamLookupView,
)

urlpatterns = [
    # Register (POST) / unregister (DELETE)
    path(
        "<int:event_id>/register/",
        RegisterEventView.as_view(),
        name="event-register",
    ),

    # Registration status (GET ONLY)
    path(
        "<int:event_id>/registration/",
        EventRegistrationStatusView.as_view(),
        name="event-registration-status",
    ),

    # Custom registration form
    path(
        "<int:event_id>/form/",
        EventFormView.as_view(),
        name="event-form",
    ),

    # Preview a team by join code
    path(
        "<int:event_id>/teams/lookup/",
        TeamLookupView.as_view(),
        name="event-team-lookup",
    ),

    # Organizer views
    path(
        "<int:event_id>/participants/",
        EventParticipantsView.as_view(),
        name="event-participants",
    ),
    path(
        "<int:event_id>/participants/export/",
        EventParticipantsExportView.as_view(),
        name="event-participants-export",
    ),
]
