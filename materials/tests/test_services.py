from unittest.mock import Mock, patch

from django.core.files.storage import default_storage
from django.db import DatabaseError
from django.test import TestCase, override_settings

from core.exceptions import (
    FileTooLarge, MetadataInvalid, RecordPersistFailed, StorageUnavailable, UnsupportedType,
)
from materials.models import Material
from materials.services import ORPHAN_LOG_MARKER, CourseDirectory, MaterialService
from materials.storage import DjangoBlobStore, StoredBlob

from .factories import make_course, make_user, metadata, text_upload


class RecordingBlobStore:
    def __init__(self):
        self.calls = []

    def store(self, upload, content_type=None):
        self.calls.append((upload.name, content_type))
        return StoredBlob(locator=f'uploads/materials/{upload.name}', url=f'/media/{upload.name}', size=upload.size)


class ClosingBlobStore(RecordingBlobStore):
    def store(self, upload, content_type=None):
        blob = super().store(upload, content_type)
        upload.close()
        return blob


class MaterialSubmissionTests(TestCase):
    def setUp(self):
        self.owner = make_user('kwame')
        self.course = make_course()

    def test_submission_stores_blob_and_creates_pending_record(self):
        material = MaterialService.submit(self.owner, metadata(self.course), text_upload())

        self.assertEqual(material.status, Material.STATUS_PENDING)
        self.assertEqual(material.owner, self.owner)
        self.assertEqual(material.course, self.course)
        self.assertEqual(material.file_type, 'txt')
        self.assertEqual(material.original_filename, 'notes.txt')
        self.assertTrue(material.file_url.startswith('uploads/materials/'))
        self.assertTrue(default_storage.exists(material.file_url))
        self.assertIn('Binary search', Material.objects.get(pk=material.pk).extracted_text)

    def test_optional_catalogue_fields_are_kept(self):
        material = MaterialService.submit(
            self.owner,
            metadata(self.course, level='200', semester='1', topic='Searching'),
            text_upload(),
            blob_store=RecordingBlobStore(),
        )
        self.assertEqual((material.level, material.semester, material.topic), (200, 1, 'Searching'))

    @override_settings(MATERIAL_MAX_UPLOAD_BYTES=16)
    def test_oversized_file_is_rejected_before_storage(self):
        store = RecordingBlobStore()
        with self.assertRaises(FileTooLarge) as ctx:
            MaterialService.submit(self.owner, metadata(self.course), text_upload(), blob_store=store)

        self.assertEqual(ctx.exception.status_code, 413)
        self.assertEqual(store.calls, [])
        self.assertFalse(Material.objects.exists())

    def test_extension_and_mime_must_agree(self):
        store = RecordingBlobStore()
        for upload in (
            text_upload(name='notes.exe', content_type='application/octet-stream'),
            text_upload(name='notes.pdf', content_type='text/plain'),
            text_upload(name='notes', content_type='text/plain'),
        ):
            with self.assertRaises(UnsupportedType):
                MaterialService.submit(self.owner, metadata(self.course), upload, blob_store=store)
        self.assertEqual(store.calls, [])

    def test_missing_file_is_rejected(self):
        with self.assertRaises(UnsupportedType):
            MaterialService.submit(self.owner, metadata(self.course), None, blob_store=RecordingBlobStore())

    def test_nine_character_description_fails_without_storing(self):
        store = RecordingBlobStore()
        with self.assertRaises(MetadataInvalid) as ctx:
            MaterialService.submit(
                self.owner, metadata(self.course, description='Too short'), text_upload(), blob_store=store,
            )

        self.assertEqual(list(ctx.exception.errors), ['description'])
        self.assertEqual(store.calls, [])
        self.assertFalse(Material.objects.exists())

    def test_metadata_errors_are_reported_together(self):
        with self.assertRaises(MetadataInvalid) as ctx:
            MaterialService.submit(
                self.owner,
                {'title': '  ', 'description': '', 'material_type': 'poster', 'course_id': 'not-a-uuid'},
                text_upload(),
                blob_store=RecordingBlobStore(),
            )
        self.assertEqual(
            set(ctx.exception.errors), {'title', 'description', 'material_type', 'course_id'},
        )

    def test_storage_failure_creates_no_record(self):
        backend = Mock()
        backend.save.side_effect = OSError('disk full')
        with self.assertRaises(StorageUnavailable) as ctx:
            MaterialService.submit(
                self.owner, metadata(self.course), text_upload(), blob_store=DjangoBlobStore(storage=backend),
            )
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertFalse(Material.objects.exists())

    def test_record_failure_logs_orphan_locator(self):
        store = RecordingBlobStore()
        with patch('materials.services.Material.objects.create', side_effect=DatabaseError('locked')):
            with self.assertLogs('materials.services', level='ERROR') as logs:
                with self.assertRaises(RecordPersistFailed) as ctx:
                    MaterialService.submit(self.owner, metadata(self.course), text_upload(), blob_store=store)

        self.assertEqual(ctx.exception.locator, 'uploads/materials/notes.txt')
        self.assertEqual(len(store.calls), 1)
        self.assertIn(ORPHAN_LOG_MARKER, logs.output[0])
        self.assertIn('uploads/materials/notes.txt', logs.output[0])

    def test_unreadable_document_still_submits(self):
        upload = text_upload(name='slides.pdf', content=b'not really a pdf', content_type='application/pdf')
        material = MaterialService.submit(self.owner, metadata(self.course), upload, blob_store=RecordingBlobStore())

        self.assertEqual(material.status, Material.STATUS_PENDING)
        self.assertEqual(Material.objects.get(pk=material.pk).extracted_text, '')

    def test_images_are_not_extracted(self):
        upload = text_upload(name='board.png', content=b'\x89PNG\r\n\x1a\n', content_type='image/png')
        material = MaterialService.submit(self.owner, metadata(self.course), upload, blob_store=RecordingBlobStore())
        self.assertEqual(material.extracted_text, '')

    def test_catalogue_numbers_out_of_range_fail_without_storing(self):
        store = RecordingBlobStore()
        for overrides in ({'level': '-1'}, {'level': '1000'}, {'semester': '0'}, {'semester': '9'}):
            with self.assertRaises(MetadataInvalid) as ctx:
                MaterialService.submit(
                    self.owner, metadata(self.course, **overrides), text_upload(), blob_store=store,
                )
            self.assertEqual(list(ctx.exception.errors), list(overrides))

        self.assertEqual(store.calls, [])
        self.assertFalse(Material.objects.exists())

    def test_long_topic_is_reported_not_cut(self):
        store = RecordingBlobStore()
        with self.assertRaises(MetadataInvalid) as ctx:
            MaterialService.submit(
                self.owner, metadata(self.course, topic='x' * 256), text_upload(), blob_store=store,
            )
        self.assertEqual(list(ctx.exception.errors), ['topic'])
        self.assertEqual(store.calls, [])

    def test_closed_upload_still_submits_without_preview(self):
        with self.assertLogs('materials.services', level='WARNING'):
            material = MaterialService.submit(
                self.owner, metadata(self.course), text_upload(), blob_store=ClosingBlobStore(),
            )

        self.assertEqual(material.status, Material.STATUS_PENDING)
        self.assertEqual(Material.objects.get(pk=material.pk).extracted_text, '')


class CourseDirectoryTests(TestCase):
    def test_resolve(self):
        course = make_course()
        self.assertEqual(CourseDirectory.resolve(str(course.id)), course)
        self.assertIsNone(CourseDirectory.resolve('missing'))
        self.assertIsNone(CourseDirectory.resolve('00000000-0000-0000-0000-000000000000'))
        self.assertIsNone(CourseDirectory.resolve(None))
