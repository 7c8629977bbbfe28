"""Reading and writing the JSON manifests."""

import json
from datetime import datetime, timezone
from pathlib import Path


def iso_utc(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def generated_timestamp() -> str:
    return iso_utc(datetime.now(timezone.utc))


def write_manifest(data: dict, path: Path) -> Path:
    """Write a manifest as pretty-printed JSON, replacing any previous one.

    The write is not atomic; a crash mid-write leaves a truncated file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write('\n')
    return path


def load_manifest(path: Path) -> dict:
    with open(path, encoding='utf-8') as f:
        return json.load(f)
