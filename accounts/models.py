# accounts/models.py
from django.db import models
from django.contrib.auth.models import User
from django.db.models.signals import post_save
from django.dispatch import receiver
from core.models import BaseModel
import logging

logger = logging.getLogger(__name__)

ROLE_STUDENT = 'student'
ROLE_INSTRUCTOR = 'instructor'
ROLE_INSTITUTION = 'institution'
ROLE_ADMIN = 'admin'

ROLE_CHOICES = (
    (ROLE_STUDENT, 'Student'),
    (ROLE_INSTRUCTOR, 'Instructor / Tutor'),
    (ROLE_INSTITUTION, 'Institution'),
    (ROLE_ADMIN, 'Admin'),
)

GENDER_CHOICES = (
    ('male', 'Male'),
    ('female', 'Female'),
    ('other', 'Other'),
    ('prefer_not_to_say', 'Prefer not to say'),
)


class Institution(BaseModel):
    """A school, college or training organisation that users belong to."""
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    logo_url = models.URLField(blank=True)
    website = models.URLField(blank=True)
    owner = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='owned_institutions',
        help_text="Account that created the institution during onboarding"
    )

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Programme(BaseModel):
    """A degree programme offered by an institution."""
    institution = models.ForeignKey(Institution, on_delete=models.CASCADE, related_name='programmes')
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, blank=True)
    degree = models.CharField(max_length=100, blank=True, help_text="Bachelor, Master, Diploma, ...")
    duration = models.PositiveIntegerField(null=True, blank=True, help_text="Duration in years")

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.institution.name})"


class UserProfile(BaseModel):
    """
    Extended user profile holding the role and everything collected during onboarding.
    Inherits UUID ID and timestamps from BaseModel.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        blank=True,
        help_text="Empty until onboarding is completed"
    )
    onboarding_completed = models.BooleanField(default=False)
    gender = models.CharField(max_length=20, choices=GENDER_CHOICES, blank=True)
    bio = models.TextField(max_length=1000, blank=True)
    institution = models.ForeignKey(
        Institution,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members'
    )
    programme = models.ForeignKey(
        Programme,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='students'
    )
    details = models.JSONField(default=dict, blank=True, help_text="Role-specific onboarding answers")

    def __str__(self):
        return f"{self.user.username}'s Profile"

    @property
    def is_moderator(self):
        """Admins and staff review submitted materials."""
        return self.role == ROLE_ADMIN or self.user.is_staff


@receiver(post_save, sender=User)
def create_user_profile(sender, instance, created, **kwargs):
    """Guarantees a UserProfile is created for every new User."""
    if created:
        UserProfile.objects.get_or_create(user=instance)
        logger.info(f"Created UserProfile for new user: {instance.username} (ID: {instance.id})")


def get_profile(user):
    """Returns the user's profile, creating it for accounts that predate the signal."""
    profile = getattr(user, 'profile', None)
    if profile is None:
        logger.warning(f"User {user.username} (ID: {user.id}) missing profile. Creating now.")
        profile, _ = UserProfile.objects.get_or_create(user=user)
    return profile
