from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model

from events import teams
from events.exceptions import (
    EventFull,
    InvalidInput,
    InvalidTeamCode,
    MembersAlreadyRegistered,
    RegistrationFailed,
    TeamSizeError,
)
from events.models import Event, EventRegistration, Team, TeamMember
from events.services import RegistrationService
from events.tests.factories import make_user, make_event, member_payload, sequence_codes


class TeamRulesTest(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.event = make_event(
            self.organizer,
            participation_type=Event.PARTICIPATION_TEAM,
            min_team_size=2,
            max_team_size=4,
        )

    def test_validate_team_size_boundaries(self):
        teams.validate_team_size(2, 2, 4)
        teams.validate_team_size(4, 2, 4)

        with self.assertRaises(TeamSizeError) as ctx:
            teams.validate_team_size(1, 2, 4)
        self.assertEqual(ctx.exception.message, "Minimum team size is 2")

        with self.assertRaises(TeamSizeError) as ctx:
            teams.validate_team_size(5, 2, 4)
        self.assertEqual(ctx.exception.message, "Maximum team size is 4")

    def test_generate_join_code_shape(self):
        for _ in range(20):
            self.assertRegex(teams.generate_join_code(), r"^[A-Z0-9]{6}$")
        self.assertEqual(len(teams.generate_join_code(length=8)), 8)

    def test_lookup_by_code_is_scoped_to_event(self):
        leader = make_user()
        team = Team.objects.create(event=self.event, name="Alpha", code="QW12ER", leader=leader)
        other_event = make_event(self.organizer, participation_type=Event.PARTICIPATION_TEAM)
        other_team = Team.objects.create(event=other_event, name="Beta", code="QW12ER", leader=leader)

        self.assertEqual(teams.lookup_by_code("qw12er", self.event.id), team)
        self.assertEqual(teams.lookup_by_code("QW12ER", other_event.id), other_team)

        third_event = make_event(self.organizer, participation_type=Event.PARTICIPATION_TEAM)
        with self.assertRaises(InvalidTeamCode):
            teams.lookup_by_code("QW12ER", third_event.id)
        with self.assertRaises(InvalidTeamCode):
            teams.lookup_by_code("QW-12", self.event.id)
        with self.assertRaises(InvalidTeamCode):
            teams.lookup_by_code(None, self.event.id)

    def test_assert_no_existing_registration(self):
        registered = make_user()
        free = make_user()
        EventRegistration.objects.create(event=self.event, user=registered)

        teams.assert_no_existing_registration([free.id], self.event.id)

        with self.assertRaises(MembersAlreadyRegistered) as ctx:
            teams.assert_no_existing_registration([free.id, registered.id], self.event.id)
        self.assertEqual(ctx.exception.user_ids, [registered.id])

    def test_resolve_members_by_supabase_id(self):
        leader = make_user()
        mate = make_user(supabase_id="6f1c2f7a-1f3e-4a9b-8f52-0b8f7f5b1c11")
        payload = member_payload(mate)
        payload["userId"] = str(mate.supabase_id)

        resolved = teams.resolve_members([payload], leader, self.event)
        self.assertEqual(resolved[0][0], mate)

    def test_resolve_members_rejects_leader_and_duplicates(self):
        leader = make_user()
        mate = make_user()

        with self.assertRaises(InvalidInput):
            teams.resolve_members([member_payload(leader)], leader, self.event)

        with self.assertRaises(InvalidInput):
            teams.resolve_members([member_payload(mate), member_payload(mate)], leader, self.event)

    def test_add_members_cleans_name_and_role(self):
        leader = make_user()
        mate = make_user()
        team = Team.objects.create(event=self.event, name="Alpha", code="QW12ER", leader=leader)
        payload = member_payload(mate, role="  Front\nend\x07  ")
        payload["name"] = "  Ravi\r\n  Kumar\x00 "

        teams.add_members(team, teams.resolve_members([payload], leader, self.event))

        member = TeamMember.objects.get(team=team, user=mate)
        self.assertEqual(member.name, "Ravi Kumar")
        self.assertEqual(member.role, "Front end")
        self.assertEqual(member.status, TeamMember.STATUS_PENDING)

    def test_create_team_retries_on_code_collision(self):
        leader = make_user()
        Team.objects.create(event=self.event, name="Existing", code="AAAAAA", leader=make_user())

        team = teams.create_team(
            self.event, leader, "Fresh", code_generator=sequence_codes("AAAAAA", "AAAAAA", "BBBBBB")
        )
        self.assertEqual(team.code, "BBBBBB")

    @override_settings(EVENT_TEAM_CODE_MAX_ATTEMPTS=2)
    def test_create_team_gives_up_after_max_attempts(self):
        Team.objects.create(event=self.event, name="Existing", code="AAAAAA", leader=make_user())

        with self.assertRaises(RegistrationFailed):
            teams.create_team(
                self.event, make_user(), "Fresh", code_generator=sequence_codes("AAAAAA", "AAAAAA", "CCCCCC")
            )
        self.assertFalse(Team.objects.filter(name="Fresh").exists())

    def test_create_team_rejects_duplicate_name(self):
        Team.objects.create(event=self.event, name="Rockets", code="AAAAAA", leader=make_user())
        with self.assertRaises(InvalidInput):
            teams.create_team(self.event, make_user(), "rockets", code_generator=sequence_codes("BBBBBB"))

    def test_leave_team(self):
        leader = make_user()
        mate = make_user()
        team = Team.objects.create(event=self.event, name="Alpha", code="QW12ER", leader=leader)
        TeamMember.objects.create(team=team, user=mate, name="mate")

        self.assertFalse(teams.leave_team(team, mate))
        self.assertTrue(Team.objects.filter(pk=team.pk).exists())
        self.assertFalse(TeamMember.objects.filter(team=team, user=mate).exists())

        self.assertTrue(teams.leave_team(team, leader))
        self.assertFalse(Team.objects.filter(pk=team.pk).exists())


class ParticipantCounterTest(TestCase):
    def setUp(self):
        self.event = make_event(make_user(role="organizer"), capacity=2, participants_count=1)

    def test_increment_stops_at_capacity(self):
        self.assertTrue(Event.objects.increment_participants(self.event.id))
        self.assertFalse(Event.objects.increment_participants(self.event.id))

        self.event.refresh_from_db()
        self.assertEqual(self.event.participants_count, 2)

    def test_decrement_never_goes_negative(self):
        self.assertTrue(Event.objects.decrement_participants(self.event.id))
        self.assertFalse(Event.objects.decrement_participants(self.event.id))

        self.event.refresh_from_db()
        self.assertEqual(self.event.participants_count, 0)


class RegistrationServiceTest(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.event = make_event(
            self.organizer,
            participation_type=Event.PARTICIPATION_BOTH,
            min_team_size=1,
            max_team_size=3,
        )

    def test_created_team_code_joins_that_team(self):
        leader = make_user()
        reg = RegistrationService(leader, code_generator=sequence_codes("JOIN01")).register(
            self.event.id,
            {"participationType": "team", "teamAction": "create", "teamName": "Orbit", "members": []},
        )
        self.assertEqual(reg.team.code, "JOIN01")
        self.assertEqual(teams.lookup_by_code("JOIN01", self.event.id), reg.team)

        joiner = make_user()
        joined = RegistrationService(joiner).register(
            self.event.id,
            {"participationType": "team", "teamAction": "join", "teamCode": "JOIN01"},
        )
        self.assertEqual(joined.team_id, reg.team_id)

    def test_leader_cannot_join_own_team(self):
        leader = make_user()
        RegistrationService(leader, code_generator=sequence_codes("SELF01")).register(
            self.event.id,
            {"participationType": "team", "teamAction": "create", "teamName": "Solo Act"},
        )
        team = Team.objects.get(code="SELF01")

        with self.assertRaises(InvalidInput):
            teams.join_team(team, leader, 3)

    def test_unregister_locks_only_the_registration_row(self):
        user = make_user()
        RegistrationService(user).register(self.event.id, {"participationType": "solo"})

        qs = RegistrationService(user)._locked_registration(self.event.id)
        self.assertTrue(qs.query.select_for_update)
        self.assertEqual(qs.query.select_for_update_of, ("self",))
        self.assertEqual(qs.query.select_related, {"team": {}, "form_response": {}})
        self.assertEqual(qs.get().user, user)

    def test_full_event_creates_no_team(self):
        Event.objects.filter(pk=self.event.pk).update(capacity=1, participants_count=1)

        with self.assertRaises(EventFull):
            RegistrationService(make_user(), code_generator=sequence_codes("ROLL01")).register(
                self.event.id,
                {"participationType": "team", "teamAction": "create", "teamName": "Late"},
            )
        self.assertFalse(Team.objects.filter(code="ROLL01").exists())
        self.assertFalse(EventRegistration.objects.exists())


class ModelFieldsTest(TestCase):
    def test_only_registration_fields_are_stored(self):
        event_fields = {f.name for f in Event._meta.get_fields()}
        member_fields = {f.name for f in TeamMember._meta.get_fields()}
        user_fields = {f.name for f in get_user_model()._meta.get_fields()}

        self.assertTrue({"capacity", "participants_count", "participation_type"} <= event_fields)
        self.assertFalse({"category", "approved"} & event_fields)
        self.assertNotIn("phone", member_fields)
        self.assertFalse({"phone", "bio"} & user_fields)
