from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny

from events.exceptions import EventNotFound, Forbidden
from events.forms_schema import get_schema, save_schema
from events.models import Event
from .generics import user_can_manage_event


class EventFormView(APIView):
    """
    GET  /api/events/<event_id>/form/  -> {"schema": [...]}  (public)
    POST /api/events/<event_id>/form/  {"schema": [...]}  organizer/admin, replaces the form
    """

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, event_id):
        if not Event.objects.filter(pk=event_id).exists():
            raise EventNotFound()
        return Response({"schema": get_schema(event_id) or []})

    def post(self, request, event_id):
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise EventNotFound()
        if not user_can_manage_event(request.user, event):
            raise Forbidden()

        save_schema(event, request.data.get("schema"), request.user)
        return Response({"success": True})
