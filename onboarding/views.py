# onboarding/views.py
import json
import logging
from functools import wraps
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_GET, require_POST
from accounts.decorators import login_required_json
from accounts.services import AccountService
from core.cookies import clear_pending_role_cookie, get_pending_role, set_pending_role_cookie
from core.exceptions import InvalidTransition
from .dispatch import SELECTABLE_ROLES, select_variant
from .machine import STATE_ABORTED, STATE_COMPLETED
from .services import OnboardingService
from .steps import ROLE_INSTITUTION

logger = logging.getLogger(__name__)


def _error(message, status=400, **extra):
    return JsonResponse({'status': 'error', 'message': message, **extra}, status=status)


def _session_response(session, status=200, **extra):
    return JsonResponse({'status': 'ok', 'session': session.to_dict(), **extra}, status=status)


def _read_json(request):
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _dispatch(request, explicit_role=None):
    """Runs the role dispatcher and starts a session for the chosen variant, if any."""
    result = select_variant(
        explicit_role=explicit_role,
        pending_role_hint=get_pending_role(request),
        account_role=AccountService.account_role(request.user),
    )
    session = OnboardingService.start(request, result.variant) if result.variant else None
    return result, session


def _with_hint_cleared(response, result):
    if result.hint_consumed:
        clear_pending_role_cookie(response)
    return response


def _active_session(request):
    session = OnboardingService.load(request)
    if session is None:
        raise InvalidTransition("No onboarding in progress. Choose a role first.")
    return session


def _session_view(handler):
    """
    Shared plumbing for the JSON endpoints that act on the active session:
    parse the body, load the session, run the handler, save the result.
    """
    @wraps(handler)
    def _view(request):
        data = _read_json(request)
        if data is None:
            return _error('Invalid JSON body.')
        try:
            session = _active_session(request)
            response = handler(request, session, data)
        except InvalidTransition as e:
            return _error(str(e), status=e.status_code)
        if session.state in (STATE_COMPLETED, STATE_ABORTED):
            OnboardingService.clear(request)
        else:
            OnboardingService.save(request, session)
        return response
    return require_POST(login_required_json(_view))


@require_GET
@login_required_json
def onboarding_state(request):
    """
    Returns the onboarding session in progress, starting one when the account
    role or a pending role hint already decides the variant.
    """
    if AccountService.has_completed_onboarding(request.user):
        return JsonResponse({
            'status': 'ok',
            'completed': True,
            'role': AccountService.account_role(request.user),
        })

    session = OnboardingService.load(request)
    if session is not None:
        return _session_response(session)

    result, session = _dispatch(request)
    if session is None:
        response = JsonResponse({'status': 'ok', 'session': None, 'roles': list(SELECTABLE_ROLES)})
    else:
        response = _session_response(session)
    return _with_hint_cleared(response, result)


@require_POST
@login_required_json
def choose_role(request):
    """Answers the role-selection prompt."""
    data = _read_json(request)
    if data is None:
        return _error('Invalid JSON body.')
    if AccountService.has_completed_onboarding(request.user):
        return _error('Onboarding is already complete.', status=409)

    role = data.get('role')
    result, session = _dispatch(request, explicit_role=role)
    if session is None:
        response = _error(f"Please choose one of: {', '.join(SELECTABLE_ROLES)}.")
    else:
        response = _session_response(session)
    return _with_hint_cleared(response, result)


@_session_view
def update_field(request, session, data):
    """Sets a single field value."""
    name = data.get('name')
    if not name:
        return _error('Field name is required.')
    session.update_field(name, data.get('value'))
    return _session_response(session)


@_session_view
def toggle_field(request, session, data):
    """Adds or removes one option of a multi-select field."""
    name, value = data.get('name'), data.get('value')
    if not name or value is None:
        return _error('Field name and value are required.')
    session.toggle_field(name, value)
    return _session_response(session)


@_session_view
def select_range(request, session, data):
    """Picks a bucket for a numeric range field."""
    name = data.get('name')
    if not name:
        return _error('Field name is required.')
    session.select_range(name, data.get('bucket'))
    return _session_response(session)


@_session_view
def next_step(request, session, data):
    """Validates the current step and moves forward, submitting after the last one."""
    result = session.advance(account_writer=OnboardingService.account_writer(request.user))
    if not result.valid:
        return _error('Please fix the highlighted fields.', errors=result.errors, session=session.to_dict())
    return _submission_response(session)


@_session_view
def previous_step(request, session, data):
    session.retreat()
    return _session_response(session)


@_session_view
def submit(request, session, data):
    """Retries a submission that failed."""
    session.submit(OnboardingService.account_writer(request.user))
    return _submission_response(session)


@_session_view
def cancel(request, session, data):
    session.cancel()
    return _session_response(session)


def _submission_response(session):
    if session.state == STATE_COMPLETED:
        return _session_response(session, payload=session.payload())
    if session.submit_error:
        return _error(session.submit_error, session=session.to_dict())
    if session.validation_errors:
        return _error('Please fix the highlighted fields.', errors=session.validation_errors,
                      session=session.to_dict())
    return _session_response(session)


@require_GET
def institution_signup(request):
    """
    Entry point for institutions: remembers the role in a short-lived cookie
    and hands over to the normal signup page.
    """
    response = redirect('account_signup')
    return set_pending_role_cookie(response, ROLE_INSTITUTION)
