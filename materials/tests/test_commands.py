from io import StringIO

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.management import call_command
from django.test import TestCase, override_settings

from .factories import make_course, make_material, make_user


UPLOAD_DIR = 'uploads/reconcile-test'


@override_settings(MATERIAL_UPLOAD_DIR=UPLOAD_DIR)
class ReconcileOrphanBlobsTests(TestCase):
    def setUp(self):
        self.referenced = default_storage.save(f'{UPLOAD_DIR}/kept.txt', ContentFile(b'kept'))
        self.orphan = default_storage.save(f'{UPLOAD_DIR}/orphan.txt', ContentFile(b'orphan'))
        make_material(make_user('ama'), make_course(), file_url=self.referenced)

    def tearDown(self):
        for name in (self.referenced, self.orphan):
            if default_storage.exists(name):
                default_storage.delete(name)

    def run_command(self, *args):
        out = StringIO()
        call_command('reconcile_orphan_blobs', *args, stdout=out)
        return out.getvalue()

    def test_report_only_by_default(self):
        output = self.run_command('--min-age-minutes', '0')

        self.assertIn('Orphan files: 1', output)
        self.assertIn(self.orphan, output)
        self.assertTrue(default_storage.exists(self.orphan))

    def test_recent_files_are_left_alone(self):
        output = self.run_command('--min-age-minutes', '60')
        self.assertIn('Orphan files: 0', output)

    def test_delete_removes_only_orphans(self):
        output = self.run_command('--min-age-minutes', '0', '--delete')

        self.assertIn('Deleted orphan files: 1', output)
        self.assertFalse(default_storage.exists(self.orphan))
        self.assertTrue(default_storage.exists(self.referenced))
