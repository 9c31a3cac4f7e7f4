# materials/moderation.py
import logging
from django.core.exceptions import ValidationError
from django.utils import timezone
from core.exceptions import AlreadyResolved, ModerationError, NotFound
from .models import Material

logger = logging.getLogger(__name__)

DECISION_APPROVE = 'approve'
DECISION_REJECT = 'reject'

DECISIONS = {
    DECISION_APPROVE: Material.STATUS_APPROVED,
    DECISION_REJECT: Material.STATUS_REJECTED,
}


class ModerationQueue:
    """
    Review queue for uploaded materials. A material leaves `pending` exactly
    once; concurrent reviewers race on a conditional update and the loser gets
    AlreadyResolved.
    """

    @staticmethod
    def list_pending():
        """Oldest submissions first."""
        return Material.objects.pending().select_related('owner', 'course').order_by('created_at')

    @staticmethod
    def list_by_status(status=None):
        materials = Material.objects.select_related('owner', 'course', 'moderated_by')
        if status:
            if status not in dict(Material.STATUS_CHOICES):
                raise ModerationError(f"Unknown status: {status}")
            materials = materials.filter(status=status)
        return materials.order_by('-created_at')

    @staticmethod
    def resolve(material_id, decision, moderator=None, notes=''):
        """
        Approves or rejects a pending material.

        Returns:
            Material: the refreshed record.

        Raises:
            ModerationError: unknown decision.
            NotFound: no material with that id.
            AlreadyResolved: the material is no longer pending.
        """
        new_status = DECISIONS.get(decision)
        if new_status is None:
            raise ModerationError("Decision must be 'approve' or 'reject'.")

        try:
            updated = Material.objects.filter(pk=material_id, status=Material.STATUS_PENDING).update(
                status=new_status,
                moderated_by=moderator,
                moderated_at=timezone.now(),
                moderation_notes=notes or '',
                updated_at=timezone.now(),
            )
        except (ValidationError, ValueError):
            raise NotFound("Material not found.")

        if not updated:
            current = Material.objects.filter(pk=material_id).values_list('status', flat=True).first()
            if current is None:
                raise NotFound("Material not found.")
            logger.warning(f"Material {material_id} was already {current}; {decision} ignored")
            raise AlreadyResolved(f"This material has already been {current}.")

        moderator_id = moderator.pk if moderator is not None else None
        logger.info(f"Material {material_id} {new_status} by moderator {moderator_id}")
        return Material.objects.get(pk=material_id)
