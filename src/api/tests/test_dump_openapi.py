import json
from io import StringIO
from pathlib import Path

from django.core.management import call_command


def test_dump_openapi_writes_schema(tmp_path: Path) -> None:
    output = tmp_path / "nested" / "openapi.json"
    out = StringIO()

    call_command("dump_openapi", "--output", str(output), stdout=out)

    schema = json.loads(output.read_text())
    assert schema["info"]["title"]
    assert any(path.endswith("/events") for path in schema["paths"])
    assert any("/check-in/" in path for path in schema["paths"])
    assert any(path.endswith("/export") for path in schema["paths"])
    assert str(output) in out.getvalue()
