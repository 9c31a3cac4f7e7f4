# materials/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q
from core.models import BaseModel


class Course(BaseModel):
    """A course that study materials are filed under."""
    title = models.CharField(max_length=255)
    code = models.CharField(max_length=50, blank=True)
    description = models.TextField(blank=True)
    institution = models.ForeignKey(
        'accounts.Institution', on_delete=models.SET_NULL,
        null=True, blank=True, related_name='courses'
    )

    class Meta:
        ordering = ['title']

    def __str__(self):
        return f"{self.code} {self.title}".strip()


class MaterialQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(status=Material.STATUS_PENDING)

    def approved(self):
        return self.filter(status=Material.STATUS_APPROVED)

    def visible_to(self, user):
        """Approved materials, plus the user's own whatever their status."""
        if user is None or not user.is_authenticated:
            return self.approved()
        return self.filter(Q(status=Material.STATUS_APPROVED) | Q(owner=user))


class Material(BaseModel):
    """An uploaded study material awaiting or past moderation."""

    TYPE_CHOICES = [
        ('lecture_notes', 'Lecture Notes'),
        ('textbook', 'Textbook'),
        ('study_guide', 'Study Guide'),
        ('past_questions', 'Past Questions'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='materials'
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    material_type = models.CharField(max_length=50, choices=TYPE_CHOICES)
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name='materials')

    # Optional catalogue details
    level = models.PositiveIntegerField(null=True, blank=True, help_text="100, 200, 300, ...")
    semester = models.PositiveSmallIntegerField(null=True, blank=True)
    topic = models.CharField(max_length=255, blank=True)

    # Reference to the stored blob; the blob itself belongs to the storage backend.
    file_url = models.CharField(max_length=500, help_text="Storage locator of the uploaded file")
    file_type = models.CharField(max_length=100, blank=True)
    file_size = models.PositiveIntegerField(default=0, help_text="File size in bytes")
    original_filename = models.CharField(max_length=255, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    moderated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='moderated_materials'
    )
    moderated_at = models.DateTimeField(null=True, blank=True)
    moderation_notes = models.TextField(blank=True)

    extracted_text = models.TextField(blank=True, help_text="Text excerpt shown to reviewers.")

    objects = MaterialQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"

    def to_dict(self):
        return {
            'id': str(self.id),
            'title': self.title,
            'description': self.description,
            'material_type': self.material_type,
            'course_id': str(self.course_id),
            'level': self.level,
            'semester': self.semester,
            'topic': self.topic,
            'file_url': self.file_url,
            'file_type': self.file_type,
            'file_size': self.file_size,
            'original_filename': self.original_filename,
            'status': self.status,
            'owner_id': self.owner_id,
            'moderated_at': self.moderated_at.isoformat() if self.moderated_at else None,
            'moderation_notes': self.moderation_notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
