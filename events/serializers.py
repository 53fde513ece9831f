from rest_framework import serializers

from .models import Event, EventRegistration, Team, TeamMember


# -----------------------------------------
# REGISTRATION REQUEST (wizard payload)
# -----------------------------------------
class TeamMemberInputSerializer(serializers.Serializer):
    # Either our user pk or the Supabase auth id; resolved in events.teams
    userId = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    role = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    avatar_url = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1024)


class RegistrationRequestSerializer(serializers.Serializer):
    """
    Shape validation only. Business rules (team size, codes, capacity)
    live in events.services.registration.
    """
    participationType = serializers.ChoiceField(
        choices=[Event.PARTICIPATION_SOLO, Event.PARTICIPATION_TEAM]
    )
    teamAction = serializers.ChoiceField(
        choices=["create", "join"], required=False, allow_null=True
    )
    teamName = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    teamCode = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=16)
    members = TeamMemberInputSerializer(many=True, required=False)
    formData = serializers.DictField(required=False, allow_null=True)


# -----------------------------------------
# TEAM SERIALIZERS
# -----------------------------------------
class TeamMemberSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = TeamMember
        fields = ["id", "user_id", "name", "email", "role", "status", "invited_at", "joined_at"]


class TeamSerializer(serializers.ModelSerializer):
    leader_id = serializers.IntegerField(read_only=True)
    leader_name = serializers.CharField(source="leader.display_name", read_only=True)
    members = TeamMemberSerializer(many=True, read_only=True)
    size = serializers.IntegerField(read_only=True)

    class Meta:
        model = Team
        fields = ["id", "event", "name", "code", "leader_id", "leader_name", "size", "members", "created_at"]


class TeamPreviewSerializer(serializers.ModelSerializer):
    """What a prospective member sees before joining: no member emails."""
    leader_name = serializers.CharField(source="leader.display_name", read_only=True)
    size = serializers.IntegerField(read_only=True)
    max_size = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = ["id", "name", "code", "leader_name", "size", "max_size"]

    def get_max_size(self, obj):
        return obj.event.effective_max_team_size


# -----------------------------------------
# PARTICIPANTS (organizer view)
# -----------------------------------------
class ParticipantSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(source="user.display_name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    participation_type = serializers.CharField(read_only=True)
    team = serializers.SerializerMethodField()
    form_response = serializers.SerializerMethodField()

    class Meta:
        model = EventRegistration
        fields = [
            "id",
            "user_id",
            "name",
            "email",
            "registered_at",
            "participation_type",
            "team",
            "form_response",
        ]

    def get_team(self, obj):
        if not obj.team_id:
            return None
        return {"id": obj.team.id, "name": obj.team.name, "code": obj.team.code}

    def get_form_response(self, obj):
        if not obj.form_response_id:
            return None
        return obj.form_response.response
