from pathlib import Path

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from meal.models import MealSubmission
from meal.services.export import ExportError, export_submission
from meal.services.types import EXPORT_FORMATS, ExportOptions


class Command(BaseCommand):
    help = "Exports one MEAL submission (parsed) to json, csv, html or pdf."

    def add_arguments(self, parser):
        parser.add_argument("submission_id", type=str, help="UUID of the MealSubmission")
        parser.add_argument("--format", choices=EXPORT_FORMATS, default="json")
        parser.add_argument("--include-photos", action="store_true", help="Keep photo data in JSON exports")
        parser.add_argument("--include-metadata", action="store_true", help="Add referer/origin/GPS metadata")
        parser.add_argument("--output", type=str, default=None,
                            help="Target file (default: generated filename in the current directory)")

    def handle(self, *args, **opts):
        try:
            sub = MealSubmission.objects.select_related("form").get(pk=opts["submission_id"])
        except (MealSubmission.DoesNotExist, ValidationError, ValueError):
            raise CommandError(f"MealSubmission not found: {opts['submission_id']}")

        options = ExportOptions(
            format=opts["format"],
            include_photos=opts["include_photos"],
            include_metadata=opts["include_metadata"],
        )
        try:
            result = export_submission(sub.parsed(), options)
        except ExportError as e:
            raise CommandError(str(e))

        target = Path(opts["output"]) if opts.get("output") else Path.cwd() / result.filename
        target.write_bytes(result.content)
        self.stdout.write(self.style.SUCCESS(f"OK: {target} ({len(result.content)} bytes)"))
