"""Report or remove uploaded material files that no Material record points at."""

from datetime import timedelta

from django.conf import settings
from django.core.files.storage import default_storage
from django.core.management.base import BaseCommand
from django.utils import timezone

from materials.models import Material


def _iter_stored_files(storage, base):
    directories, files = storage.listdir(base)
    for name in files:
        yield f"{base}/{name}"
    for directory in directories:
        yield from _iter_stored_files(storage, f"{base}/{directory}")


class Command(BaseCommand):
    help = "Report material uploads that no Material row references (left behind by failed record writes)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Delete orphan files after reporting. Default is report-only.",
        )
        parser.add_argument(
            "--show",
            type=int,
            default=50,
            help="How many orphan paths to print (default: 50).",
        )
        parser.add_argument(
            "--min-age-minutes",
            type=int,
            default=60,
            help="Ignore files newer than this, which may belong to an upload in flight (default: 60).",
        )

    def handle(self, *args, **options):
        storage = default_storage
        upload_dir = getattr(settings, "MATERIAL_UPLOAD_DIR", "uploads/materials").rstrip("/")
        delete = bool(options["delete"])
        show = max(int(options["show"]), 0)
        cutoff = timezone.now() - timedelta(minutes=max(int(options["min_age_minutes"]), 0))

        if not storage.exists(upload_dir):
            self.stdout.write(self.style.WARNING(f"Upload directory does not exist: {upload_dir}"))
            return

        referenced = set(Material.objects.exclude(file_url="").values_list("file_url", flat=True))

        total_files = 0
        orphans = []
        for name in _iter_stored_files(storage, upload_dir):
            total_files += 1
            if name in referenced:
                continue
            if storage.get_modified_time(name) > cutoff:
                continue
            orphans.append(name)

        self.stdout.write(f"Upload directory: {upload_dir}")
        self.stdout.write(f"Scanned files: {total_files}")
        self.stdout.write(f"Referenced files: {len(referenced)}")
        self.stdout.write(f"Orphan files: {len(orphans)}")

        for name in orphans[:show]:
            self.stdout.write(f" - {name}")
        if len(orphans) > show:
            self.stdout.write(f"... ({len(orphans) - show} more)")

        if not delete:
            self.stdout.write(self.style.WARNING("Report-only mode. Re-run with --delete to remove orphan files."))
            return

        deleted = 0
        for name in orphans:
            try:
                storage.delete(name)
                deleted += 1
            except OSError as exc:
                self.stderr.write(f"Failed to delete {name}: {exc}")
        self.stdout.write(self.style.SUCCESS(f"Deleted orphan files: {deleted}"))
