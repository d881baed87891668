# events/throttles.py

from rest_framework.throttling import ScopedRateThrottle


class TeamJoinThrottle(ScopedRateThrottle):
    """
    Throttle invite-code submissions per user.

    Scope key: 'team-join' (the view sets throttle_scope to match)
    Cache key shape:
      throttle_team-join_u<user_id>
    Falls back to the client IP for anonymous requests.
    """
    scope = "team-join"

    def get_cache_key(self, request, view):
        # Only throttle POST (join attempts)
        if request.method != "POST":
            return None

        user = getattr(request, "user", None)
        if user and user.is_authenticated:
            ident = f"u{user.id}"
        else:
            ident = f"ip{self.get_ident(request)}"

        return f"throttle_{self.scope}_{ident}"


class QRScanThrottle(ScopedRateThrottle):
    """
    Throttle ticket scans per organizer.

    Scope key: 'qr-scan'
    Cache key shape:
      throttle_qr-scan_u<user_id>
    """
    scope = "qr-scan"

    def get_cache_key(self, request, view):
        if request.method != "POST":
            return None

        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        return f"throttle_{self.scope}_u{user.id}"
