# materials/services.py
import logging
import os
import PyPDF2
import docx
from pptx import Presentation
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from core.exceptions import (
    FileProcessingError, FileTooLarge, MetadataInvalid, RecordPersistFailed, UnsupportedType,
)
from .models import Course, Material
from .storage import DjangoBlobStore

logger = logging.getLogger(__name__)

# Extension -> MIME types a browser may report for it.
ALLOWED_FILE_TYPES = {
    '.pdf': ('application/pdf',),
    '.doc': ('application/msword',),
    '.docx': ('application/vnd.openxmlformats-officedocument.wordprocessingml.document',),
    '.ppt': ('application/vnd.ms-powerpoint',),
    '.pptx': ('application/vnd.openxmlformats-officedocument.presentationml.presentation',),
    '.txt': ('text/plain',),
    '.jpg': ('image/jpeg', 'image/jpg'),
    '.jpeg': ('image/jpeg', 'image/jpg'),
    '.png': ('image/png',),
}

EXTRACTABLE_EXTENSIONS = ('.pdf', '.docx', '.pptx', '.txt')

MIN_DESCRIPTION_LENGTH = 10
MAX_TITLE_LENGTH = 255
MAX_TOPIC_LENGTH = 255

# Accepted (minimum, maximum) for the optional catalogue numbers.
CATALOGUE_RANGES = {
    'level': (100, 900),
    'semester': (1, 3),
}

ORPHAN_LOG_MARKER = 'material_orphan_blob'


class CourseDirectory:
    """Looks up the course a material is filed under."""

    @staticmethod
    def resolve(course_id):
        if not course_id:
            return None
        try:
            return Course.objects.get(pk=course_id)
        except (Course.DoesNotExist, ValidationError, ValueError):
            return None


def _optional_int(value):
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        raise ValueError(value)
    return int(value)


class MaterialService:
    """
    A service class for handling business logic related to study materials:
    upload checks, the submission pipeline and text extraction for reviewers.
    """

    @staticmethod
    def max_upload_bytes():
        return getattr(settings, 'MATERIAL_MAX_UPLOAD_BYTES', 10 * 1024 * 1024)

    @staticmethod
    def check_file(upload):
        """
        Raises FileTooLarge or UnsupportedType. Returns the normalised extension.
        """
        if upload is None:
            raise UnsupportedType("No file uploaded.")

        max_bytes = MaterialService.max_upload_bytes()
        if upload.size > max_bytes:
            raise FileTooLarge(f"File too large (max {max_bytes // (1024 * 1024)}MB).")

        file_ext = os.path.splitext((upload.name or '').lower())[1]
        allowed_mimes = ALLOWED_FILE_TYPES.get(file_ext)
        content_type = (getattr(upload, 'content_type', '') or '').split(';')[0].strip().lower()
        if not allowed_mimes or content_type not in allowed_mimes:
            raise UnsupportedType(
                "Invalid file type. Only PDF, DOC, DOCX, PPT, PPTX, TXT, JPG, JPEG, and PNG files are allowed."
            )
        return file_ext

    @staticmethod
    def validate_metadata(metadata, directory=CourseDirectory):
        """
        Checks the descriptive fields of a submission.

        Returns:
            tuple: (cleaned values, errors). errors maps field name -> message and
            is empty when the metadata is acceptable.
        """
        errors = {}
        cleaned = {}

        title = (metadata.get('title') or '').strip()
        if not title:
            errors['title'] = "Title is required"
        elif len(title) > MAX_TITLE_LENGTH:
            errors['title'] = f"Title must be at most {MAX_TITLE_LENGTH} characters"
        cleaned['title'] = title

        description = (metadata.get('description') or '').strip()
        if len(description) < MIN_DESCRIPTION_LENGTH:
            errors['description'] = f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters"
        cleaned['description'] = description

        material_type = metadata.get('material_type')
        if material_type not in dict(Material.TYPE_CHOICES):
            errors['material_type'] = "Please select a material type"
        cleaned['material_type'] = material_type

        course = directory.resolve(metadata.get('course_id'))
        if course is None:
            errors['course_id'] = "Please select a course"
        cleaned['course'] = course

        for name, (minimum, maximum) in CATALOGUE_RANGES.items():
            try:
                value = _optional_int(metadata.get(name))
            except (TypeError, ValueError):
                errors[name] = f"{name.capitalize()} must be a number"
                continue
            if value is not None and not minimum <= value <= maximum:
                errors[name] = f"{name.capitalize()} must be between {minimum} and {maximum}"
            cleaned[name] = value

        topic = (metadata.get('topic') or '').strip()
        if len(topic) > MAX_TOPIC_LENGTH:
            errors['topic'] = f"Topic must be at most {MAX_TOPIC_LENGTH} characters"
        cleaned['topic'] = topic

        return cleaned, errors

    @staticmethod
    def submit(owner, metadata, upload, blob_store=None, directory=CourseDirectory):
        """
        Runs the submission pipeline: file checks, metadata checks, blob storage,
        then the pending record.

        Nothing is stored unless every check passes. If the record cannot be
        written after the blob was stored, the blob is left in place and logged
        as an orphan for the reconcile_orphan_blobs command.

        Raises:
            FileTooLarge, UnsupportedType, MetadataInvalid, StorageUnavailable,
            RecordPersistFailed.
        """
        file_ext = MaterialService.check_file(upload)

        cleaned, errors = MaterialService.validate_metadata(metadata, directory)
        if errors:
            logger.warning(f"Material submission by user {owner.pk} rejected: {errors}")
            raise MetadataInvalid(errors)

        blob_store = blob_store or DjangoBlobStore()
        blob = blob_store.store(upload, content_type=upload.content_type)

        try:
            material = Material.objects.create(
                owner=owner,
                file_url=blob.locator,
                file_type=file_ext.lstrip('.'),
                file_size=blob.size or upload.size,
                original_filename=os.path.basename(upload.name)[:255],
                status=Material.STATUS_PENDING,
                **cleaned,
            )
        except DatabaseError as e:
            logger.error(
                f"{ORPHAN_LOG_MARKER} locator={blob.locator} owner={owner.pk}: record write failed: {e}"
            )
            raise RecordPersistFailed("Your file was received but could not be saved. Please try again.",
                                      locator=blob.locator)

        logger.info(f"Material {material.id} submitted by user {owner.pk} for moderation")
        MaterialService.attach_preview(material, upload)
        return material

    @staticmethod
    def attach_preview(material, upload):
        """Stores a text excerpt for reviewers. Failures are logged and ignored."""
        if os.path.splitext(upload.name.lower())[1] not in EXTRACTABLE_EXTENSIONS:
            return
        try:
            upload.seek(0)
            text = MaterialService.extract_text_from_file(upload)
        except (FileProcessingError, OSError, ValueError) as e:
            logger.warning(f"No preview for material {material.id}: {e}")
            return
        if text:
            Material.objects.filter(pk=material.pk).update(extracted_text=text)
            material.extracted_text = text

    @staticmethod
    def extract_text_from_file(file):
        """
        Extracts text content from a supported file type.

        Args:
            file: The Django UploadedFile object.

        Returns:
            str: The extracted text, cut to MATERIAL_TEXT_PREVIEW_CHARS.

        Raises:
            FileProcessingError: If the file is unsupported or processing fails.
        """
        file_ext = os.path.splitext(file.name.lower())[1]
        limit = getattr(settings, 'MATERIAL_TEXT_PREVIEW_CHARS', 20000)

        try:
            if file_ext == '.pdf':
                pdf_reader = PyPDF2.PdfReader(file)
                text = ''.join(page.extract_text() or '' for page in pdf_reader.pages)
            elif file_ext == '.docx':
                doc = docx.Document(file)
                text = '\n'.join(para.text for para in doc.paragraphs)
            elif file_ext == '.pptx':
                prs = Presentation(file)
                text = ''.join(shape.text + '\n' for slide in prs.slides for shape in slide.shapes if hasattr(shape, "text"))
            elif file_ext == '.txt':
                text = file.read().decode('utf-8', errors='ignore')
            else:
                raise FileProcessingError('Unsupported file type.')
        except FileProcessingError:
            raise
        except Exception as e:
            logger.error(f"Error processing file {file.name}: {e}")
            raise FileProcessingError(f"Failed to process file: {e}")

        text = text.strip()
        if len(text) > limit:
            text = text[:limit] + '\n... [truncated]'
        return text
