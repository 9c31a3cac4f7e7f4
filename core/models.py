# core/models.py
from django.db import models
import uuid

# Every model in the project inherits from this, so records get a UUID
# primary key and automatic created_at/updated_at timestamps.
class BaseModel(models.Model):
    """
    An abstract base class model that provides UUID primary key,
    created_at, and updated_at fields.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
