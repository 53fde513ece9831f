def user_is_system_admin(user) -> bool:
    """
    Global/system manager flag based on user.role (and superuser).
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False

    return bool(getattr(user, "is_event_admin", False))


def user_can_manage_event(user, event) -> bool:
    """
    Who can edit the registration form and see participants?
    - direct event.organizer
    - global admin
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False

    if event.organizer_id == user.id:
        return True

    return user_is_system_admin(user)
