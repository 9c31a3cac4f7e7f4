from django.conf import settings
from django.http import HttpResponse


# --- CONSTANTS ---
PENDING_ROLE_COOKIE_NAME = 'pending_role'

# Roles that may only be reached through a dedicated signup entry point.
HINTABLE_ROLES = ('institution',)

# ===============================================
# ONBOARDING COOKIE: Pending Role Hint
# ===============================================
# Strictly necessary for the signup flow, so it is not gated on consent.

def set_pending_role_cookie(response: HttpResponse, role: str) -> HttpResponse:
    """Remembers which role-specific signup flow the visitor started."""
    if role not in HINTABLE_ROLES:
        raise ValueError(f"Role {role!r} cannot be carried as a pending hint.")

    response.set_cookie(
        key=PENDING_ROLE_COOKIE_NAME,
        value=role,
        max_age=getattr(settings, 'PENDING_ROLE_COOKIE_MAX_AGE', 3600),
        httponly=True,
        samesite='Lax'
    )
    return response

def get_pending_role(request) -> str | None:
    """
    Reads the raw pending role hint. Unknown values are passed on so the
    dispatcher can mark them consumed and the view can clear the cookie.
    """
    return request.COOKIES.get(PENDING_ROLE_COOKIE_NAME) or None

def clear_pending_role_cookie(response: HttpResponse) -> HttpResponse:
    """Deletes the hint once it has been consumed; it is one-time data."""
    response.delete_cookie(PENDING_ROLE_COOKIE_NAME)
    return response
