# events/throttles.py

from rest_framework.throttling import ScopedRateThrottle


class EventRegisterThrottle(ScopedRateThrottle):
    """
    Throttle register/unregister per user per event.

    Scope key: 'event-register'
    Cache key shape:
      throttle_event-register_u<user_id>_e<event_id>
    """
    scope = "event-register"

    def get_cache_key(self, request, view):
        # Reads (GET status) are free
        if request.method not in ("POST", "DELETE"):
            return None

        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        event_id = getattr(view, "kwargs", {}).get("event_id", "unknown")
        return f"throttle_{self.scope}_u{user.id}_e{event_id}"


class TeamLookupThrottle(ScopedRateThrottle):
    """
    Throttle join-code lookups per user, so codes cannot be brute forced.

    Scope key: 'team-lookup'
    Cache key shape:
      throttle_team-lookup_u<user_id>
    """
    scope = "team-lookup"

    def get_cache_key(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None
        return f"throttle_{self.scope}_u{user.id}"
