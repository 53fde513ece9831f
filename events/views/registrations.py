from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.pagination import LimitOffsetPagination
from rest_framework import status
from django.db.models import Q
from django.http import HttpResponse  # For CSV export

import csv
from events.exceptions import EventNotFound, Forbidden
from events.forms_schema import get_schema
from events.models import Event, EventRegistration
from events.serializers import ParticipantSerializer, TeamSerializer
from events.services import RegistrationService
from events.throttles import EventRegisterThrottle
from .generics import user_can_manage_event


class RegisterEventView(APIView):
    """
    POST   /api/events/<event_id>/register/  -> {"success": true, "teamId": ...}
    DELETE /api/events/<event_id>/register/  -> {"success": true}
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [EventRegisterThrottle]

    def post(self, request, event_id):
        registration = RegistrationService(request.user).register(event_id, request.data)
        return Response(
            {"success": True, "teamId": registration.team_id},
            status=status.HTTP_200_OK,
        )

    def delete(self, request, event_id):
        RegistrationService(request.user).unregister(event_id)
        return Response({"success": True}, status=status.HTTP_200_OK)


class EventRegistrationStatusView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        reg = RegistrationService(request.user).status(event_id)

        if not reg:
            return Response({"registered": False}, status=200)

        team = None
        if reg.team_id:
            team = TeamSerializer(reg.team).data

        return Response({
            "registered": True,
            "registration_id": reg.id,
            "registered_at": reg.registered_at,
            "team_id": reg.team_id,
            "team": team,
        }, status=200)


def _get_managed_event(user, event_id):
    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        raise EventNotFound()
    if not user_can_manage_event(user, event):
        raise Forbidden("You do not have permission to view participants for this event.")
    return event


def _participants_queryset(event, request):
    regs = (
        EventRegistration.objects
        .filter(event=event)
        .select_related("user", "team", "form_response")
        .order_by("-registered_at")
    )

    participation = request.query_params.get("type", "all")
    if participation == Event.PARTICIPATION_SOLO:
        regs = regs.filter(team__isnull=True)
    elif participation == Event.PARTICIPATION_TEAM:
        regs = regs.filter(team__isnull=False)

    search = (request.query_params.get("search") or "").strip()
    if search:
        regs = regs.filter(
            Q(user__username__icontains=search)
            | Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
            | Q(user__email__icontains=search)
            | Q(team__name__icontains=search)
        )
    return regs


class EventParticipantsView(APIView):
    """
    GET /api/events/<event_id>/participants/?type=all|solo|team&search=
    Organizer/admin only.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = _get_managed_event(request.user, event_id)
        regs = _participants_queryset(event, request)

        paginator = LimitOffsetPagination()
        result_page = paginator.paginate_queryset(regs, request)
        serializer = ParticipantSerializer(result_page, many=True)
        return paginator.get_paginated_response(serializer.data)


class EventParticipantsExportView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = _get_managed_event(request.user, event_id)
        regs = _participants_queryset(event, request)
        fields = get_schema(event.id) or []

        response = HttpResponse(
            content_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="participants_{event_id}.csv"'},
        )

        writer = csv.writer(response)
        writer.writerow(
            ["Name", "Email", "Type", "Team", "Team Code", "Registered At"]
            + [field["label"] for field in fields]
        )

        for reg in regs:
            answers = reg.form_response.response if reg.form_response_id else {}
            writer.writerow(
                [
                    reg.user.display_name,
                    reg.user.email,
                    "Team" if reg.team_id else "Solo",
                    reg.team.name if reg.team_id else "",
                    reg.team.code if reg.team_id else "",
                    reg.registered_at.strftime("%Y-%m-%d %H:%M:%S"),
                ]
                + ["" if answers.get(field["id"]) is None else answers.get(field["id"]) for field in fields]
            )

        return response
