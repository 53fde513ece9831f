from .registrations import (
    RegisterEventView,
    EventRegistrationStatusView,
    EventParticipantsView,
    EventParticipantsExportView,
)
from .forms import EventFormView
from .teams import TeamLookupView
