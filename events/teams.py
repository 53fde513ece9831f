# events/teams.py
"""
Team registry and membership rules for team-based events.

Used by the registration service; nothing in here commits on its own, the
caller owns the transaction.
"""
import logging
import secrets
import string
import uuid

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction, IntegrityError, DatabaseError
from django.utils import timezone

from .exceptions import (
    InvalidInput,
    InvalidTeamCode,
    MembersAlreadyRegistered,
    RegistrationFailed,
    TeamSizeError,
)
from .models import EventRegistration, Team, TeamMember
from .sanitizers import normalize_team_code, sanitize_single_line

logger = logging.getLogger("cos.events")

User = get_user_model()

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code(length=None) -> str:
    """Random uppercase alphanumeric code. Uniqueness is the caller's problem."""
    length = length or settings.EVENT_TEAM_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def validate_team_size(member_count: int, min_size: int, max_size: int) -> None:
    """`member_count` includes the leader."""
    if member_count < min_size:
        raise TeamSizeError(f"Minimum team size is {min_size}")
    if member_count > max_size:
        raise TeamSizeError(f"Maximum team size is {max_size}")


def lookup_by_code(code, event_id) -> Team:
    """Codes are scoped per event: the same string in another event is a miss."""
    normalized = normalize_team_code(code)
    if not normalized:
        raise InvalidTeamCode()
    team = (
        Team.objects
        .filter(code=normalized, event_id=event_id)
        .select_related("leader")
        .first()
    )
    if team is None:
        raise InvalidTeamCode()
    return team


def assert_no_existing_registration(user_ids, event_id) -> None:
    offending = list(
        EventRegistration.objects
        .filter(event_id=event_id, user_id__in=list(user_ids))
        .values_list("user_id", flat=True)
    )
    if offending:
        raise MembersAlreadyRegistered(sorted(offending))


def _resolve_user(user_ref):
    """A member reference is either our pk or the Supabase auth id."""
    ref = str(user_ref).strip()
    if ref.isdigit():
        return User.objects.filter(pk=int(ref), is_active=True).first()
    try:
        supabase_id = uuid.UUID(ref)
    except ValueError:
        return None
    return User.objects.filter(supabase_id=supabase_id, is_active=True).first()


def resolve_members(members, leader, event):
    """
    Turn validated member inputs into (user, data) pairs.

    Every member must be a known account, listed once, and not the leader
    (the leader is counted separately).
    """
    if any(not member.get("userId") for member in members):
        raise InvalidInput("All team members must be registered users.")

    resolved = []
    seen = set()
    for member in members:
        user = _resolve_user(member["userId"])
        if user is None:
            raise InvalidInput(f"{member['name']} is not a registered user.")
        if user.pk == leader.pk:
            raise InvalidInput("The team leader is counted automatically; do not list yourself as a member.")
        if user.pk in seen:
            raise InvalidInput(f"{member['name']} is listed more than once.")
        seen.add(user.pk)
        resolved.append((user, member))

    assert_no_existing_registration(seen, event.id)
    return resolved


def create_team(event, leader, name, code_generator=None) -> Team:
    """
    Insert a team with a join code no other team of the event uses.

    Each attempt checks for the code first and then relies on the
    (event, code) constraint for the race between check and insert.
    """
    code_generator = code_generator or generate_join_code

    if Team.objects.filter(event=event, name__iexact=name).exists():
        raise InvalidInput("A team with this name already exists for this event.")

    for attempt in range(1, settings.EVENT_TEAM_CODE_MAX_ATTEMPTS + 1):
        code = code_generator()
        if Team.objects.filter(event=event, code=code).exists():
            logger.info(f"Team code collision on attempt {attempt}: event={event.id}")
            continue
        try:
            with transaction.atomic():
                return Team.objects.create(event=event, name=name, code=code, leader=leader)
        except IntegrityError:
            if Team.objects.filter(event=event, name__iexact=name).exists():
                raise InvalidInput("A team with this name already exists for this event.")
            logger.info(f"Team code taken concurrently on attempt {attempt}: event={event.id}")
        except DatabaseError as e:
            raise RegistrationFailed(f"Failed to create team: {e}")

    logger.warning(f"Could not allocate a team code: event={event.id}")
    raise RegistrationFailed("Failed to create team: could not generate a unique team code")


def add_members(team, resolved_members) -> list:
    rows = [
        TeamMember(
            team=team,
            user=user,
            name=sanitize_single_line(member["name"]) or user.display_name,
            email=member.get("email") or user.email,
            role=sanitize_single_line(member.get("role"), max_length=64) or None,
            status=TeamMember.STATUS_PENDING,
        )
        for user, member in resolved_members
    ]
    try:
        return TeamMember.objects.bulk_create(rows)
    except DatabaseError as e:
        raise RegistrationFailed(f"Failed to add team members: {e}")


def join_team(team, user, max_size) -> TeamMember:
    """
    Record `user` as an accepted member of `team`.

    An invitation the leader created for this user is accepted in place and
    does not count twice towards the size limit.
    """
    if team.leader_id == user.pk:
        raise InvalidInput("You already lead this team.")

    now = timezone.now()
    member = TeamMember.objects.filter(team=team, user=user).first()
    if member is not None:
        member.status = TeamMember.STATUS_ACCEPTED
        member.joined_at = now
        member.save(update_fields=["status", "joined_at"])
        return member

    if team.size >= max_size:
        raise TeamSizeError(f"Team is full (maximum team size is {max_size})")

    return TeamMember.objects.create(
        team=team,
        user=user,
        name=user.display_name,
        email=user.email,
        role="member",
        status=TeamMember.STATUS_ACCEPTED,
        joined_at=now,
    )


def leave_team(team, user) -> bool:
    """
    Detach `user` from `team`. A leader leaving deletes the whole team.

    Returns True when the team itself was deleted.
    """
    if team.leader_id == user.pk:
        team.delete()
        return True
    TeamMember.objects.filter(team=team, user=user).delete()
    return False
