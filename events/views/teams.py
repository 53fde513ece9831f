# events/views/teams.py - Team lookup for the registration wizard

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from events.exceptions import EventNotFound
from events.models import Event
from events.serializers import TeamPreviewSerializer
from events.teams import lookup_by_code
from events.throttles import TeamLookupThrottle


class TeamLookupView(APIView):
    """
    GET /api/events/<event_id>/teams/lookup/?code=AB12CD

    Lets the join step show which team a code belongs to before the
    user submits the registration.
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [TeamLookupThrottle]

    def get(self, request, event_id):
        if not Event.objects.filter(pk=event_id).exists():
            raise EventNotFound()

        team = lookup_by_code(request.query_params.get("code"), event_id)
        return Response(TeamPreviewSerializer(team).data)
