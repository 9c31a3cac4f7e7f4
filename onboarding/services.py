# onboarding/services.py
import logging
from functools import partial
from accounts.services import AccountService
from core.exceptions import InvalidTransition
from .machine import OnboardingSession

logger = logging.getLogger(__name__)

SESSION_KEY = 'onboarding'


class OnboardingService:
    """
    Keeps the in-progress onboarding session in the Django session between
    requests.
    """

    @staticmethod
    def load(request):
        data = request.session.get(SESSION_KEY)
        if not data:
            return None
        try:
            return OnboardingSession.from_dict(data)
        except InvalidTransition as e:
            logger.warning(f"Discarding unreadable onboarding session: {e}")
            OnboardingService.clear(request)
            return None

    @staticmethod
    def save(request, session):
        request.session[SESSION_KEY] = session.to_dict()
        request.session.modified = True

    @staticmethod
    def clear(request):
        if SESSION_KEY in request.session:
            del request.session[SESSION_KEY]

    @staticmethod
    def start(request, flow):
        session = OnboardingSession.start(flow)
        OnboardingService.save(request, session)
        return session

    @staticmethod
    def account_writer(user):
        """Binds the account write to the requesting user."""
        return partial(AccountService.create_or_update_account, user)
