import json
import typing as t
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand
from ninja.responses import NinjaJSONEncoder

from api.api import api


class Command(BaseCommand):
    help = "Write the OpenAPI schema of the UniEvents API to a JSON file."

    def add_arguments(self, parser: t.Any) -> None:
        """Add command arguments."""
        parser.add_argument(
            "--output",
            type=Path,
            default=settings.BASE_DIR.parent / ".artifacts" / "openapi.json",
            help="Target file (default: .artifacts/openapi.json at the repository root)",
        )

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        """Render the schema and write it out."""
        output: Path = options["output"]
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(api.get_openapi_schema(), indent=2, cls=NinjaJSONEncoder))
        self.stdout.write(self.style.SUCCESS(f"OpenAPI schema written to {output}"))
