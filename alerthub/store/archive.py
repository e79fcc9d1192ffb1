"""Append-only per-domain, per-day archive of raw webhook payloads.

Each file holds newline-delimited JSON records of
``{timestamp, alertType, source, rawPayload}``. Query paths never read it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from alerthub.config import settings

logger = logging.getLogger("alerthub.store")

ARCHIVE_SOURCE = "infrastructure-webhook"


class RawPayloadArchive:
    def __init__(self, directory: str | Path | None = None) -> None:
        self._dir = Path(directory or settings.logs_dir)

    @property
    def directory(self) -> Path:
        return self._dir

    def append(self, raw_payload, alert_type: str, now: datetime | None = None) -> Path | None:
        """Append a record; I/O failures are logged and swallowed."""
        now = now or datetime.now(timezone.utc)
        path = self._dir / f"{alert_type}-alerts-{now.strftime('%Y-%m-%d')}.json"
        entry = {
            "timestamp": now.isoformat(),
            "alertType": alert_type,
            "source": ARCHIVE_SOURCE,
            "rawPayload": raw_payload,
        }
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, default=str) + "\n")
        except Exception:
            logger.exception("Failed to append raw payload to %s", path)
            return None
        logger.info("Raw alert archived to %s (type: %s)", path.name, alert_type)
        return path

    def resolve(self, filename: str) -> Path | None:
        """Return the path of an existing archive file, or None for unknown/unsafe names."""
        if not filename.endswith(".json") or Path(filename).name != filename:
            return None
        path = self._dir / filename
        return path if path.is_file() else None

    def list_files(self) -> list[dict]:
        if not self._dir.is_dir():
            return []
        files = []
        for path in self._dir.glob("*.json"):
            stat = path.stat()
            files.append({
                "filename": path.name,
                "size": stat.st_size,
                "modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            })
        return sorted(files, key=lambda f: f["modified"], reverse=True)

    def read(self, filename: str) -> list[dict] | None:
        path = self.resolve(filename)
        if path is None:
            return None
        records = []
        for line in path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                records.append(json.loads(line))
        return records
