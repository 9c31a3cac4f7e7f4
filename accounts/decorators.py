# accounts/decorators.py
from functools import wraps
from django.http import JsonResponse
from .services import AccountService


def onboarding_required(view_func):
    """Rejects requests from users who have not finished onboarding."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'status': 'error', 'message': 'Authentication required.'}, status=401)
        if not AccountService.has_completed_onboarding(request.user):
            return JsonResponse({'status': 'error', 'message': 'Please complete onboarding first.'}, status=403)
        return view_func(request, *args, **kwargs)
    return _wrapped


def moderator_required(view_func):
    """Restricts a view to admins and staff."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'status': 'error', 'message': 'Authentication required.'}, status=401)
        if not AccountService.is_moderator(request.user):
            return JsonResponse({'status': 'error', 'message': 'Access denied.'}, status=403)
        return view_func(request, *args, **kwargs)
    return _wrapped


def login_required_json(view_func):
    """Like login_required, but answers with a JSON 401 instead of a redirect."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'status': 'error', 'message': 'Authentication required.'}, status=401)
        return view_func(request, *args, **kwargs)
    return _wrapped
