# accounts/services.py
import logging
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from core.exceptions import AccountWriteError
from .models import (
    Institution, Programme, UserProfile, get_profile,
    ROLE_ADMIN, ROLE_INSTITUTION, ROLE_INSTRUCTOR, ROLE_STUDENT,
)

logger = logging.getLogger(__name__)

NO_INSTITUTION = 'no-institution'

# Onboarding keys that map onto real columns; everything else lands in profile.details.
_USER_FIELDS = {'firstName': 'first_name', 'lastName': 'last_name'}
_PROFILE_FIELDS = {'gender': 'gender', 'bio': 'bio'}
_RELATION_FIELDS = ('institutionId', 'programmeId')


class AccountService:
    """
    Writes the result of a completed onboarding session to account storage.
    """

    ONBOARDING_ROLES = (ROLE_STUDENT, ROLE_INSTRUCTOR, ROLE_INSTITUTION)

    @staticmethod
    def _lookup(model, pk, label):
        try:
            return model.objects.get(pk=pk)
        except (model.DoesNotExist, ValidationError, ValueError):
            raise AccountWriteError(f"Invalid {label} selected")

    @staticmethod
    def create_or_update_account(user, role, fields):
        """
        Persists the onboarding payload as a single atomic write.

        Args:
            user: The Django user completing onboarding.
            role: One of student, instructor or institution.
            fields: The accumulated onboarding field mapping.

        Returns:
            The id of the updated UserProfile.

        Raises:
            AccountWriteError: If the payload references unknown records or the write fails.
        """
        if role not in AccountService.ONBOARDING_ROLES:
            raise AccountWriteError("Invalid role")

        try:
            with transaction.atomic():
                profile = get_profile(user)

                for key, attr in _USER_FIELDS.items():
                    if key in fields:
                        setattr(user, attr, (fields[key] or '').strip())
                for key, attr in _PROFILE_FIELDS.items():
                    if key in fields:
                        setattr(profile, attr, fields[key] or '')

                institution = None
                institution_id = fields.get('institutionId')
                if role == ROLE_INSTITUTION:
                    institution = Institution.objects.create(
                        name=fields['institutionName'].strip(),
                        description=fields.get('bio', ''),
                        owner=user,
                    )
                elif institution_id and institution_id != NO_INSTITUTION:
                    institution = AccountService._lookup(Institution, institution_id, 'institution')

                programme = None
                programme_id = fields.get('programmeId')
                if role == ROLE_STUDENT and programme_id:
                    programme = AccountService._lookup(Programme, programme_id, 'programme')
                    if institution is not None and programme.institution_id != institution.id:
                        raise AccountWriteError("Selected programme does not belong to the selected institution")

                profile.institution = institution
                profile.programme = programme
                profile.details = {
                    key: value for key, value in fields.items()
                    if key not in _USER_FIELDS and key not in _PROFILE_FIELDS and key not in _RELATION_FIELDS
                }
                profile.role = role
                profile.onboarding_completed = True

                user.save()
                profile.save()
        except DatabaseError as e:
            logger.error(f"Account write failed for user {user.pk}: {e}")
            raise AccountWriteError("Could not save your profile. Please try again.")

        logger.info(f"Onboarding completed for user {user.pk} as {role}")
        return profile.id

    @staticmethod
    def account_role(user):
        """The role recorded on the account, or None before onboarding."""
        if not user.is_authenticated:
            return None
        return get_profile(user).role or None

    @staticmethod
    def has_completed_onboarding(user):
        if not user.is_authenticated:
            return False
        profile = get_profile(user)
        return profile.onboarding_completed or profile.role == ROLE_ADMIN

    @staticmethod
    def is_moderator(user):
        if not user.is_authenticated:
            return False
        return get_profile(user).is_moderator
