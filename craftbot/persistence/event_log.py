"""JSON-lines log of gameplay events with size-based gzip rotation."""

from __future__ import annotations

import gzip
import json
import logging
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List

from ..config import CONFIG


logger = logging.getLogger(__name__)

# Event type constants used by the behaviours
HARVEST = "HARVEST"
CRAFT = "CRAFT"
DEPOSIT = "DEPOSIT"
COMBAT_KILL = "COMBAT_KILL"
DEATH = "DEATH"


def _log_retention_bytes() -> int:
    """Return log rotation threshold in bytes from the loaded config."""

    default_mb = 50
    cache = CONFIG.cache or {}
    try:
        default_mb = int(cache.get("log_retention_mb", default_mb))
    except (TypeError, ValueError):
        logger.warning("Invalid cache.log_retention_mb %r", cache.get("log_retention_mb"))
    return default_mb * 1024 * 1024


def _rotate_log(path: Path) -> None:
    """Compress ``path`` and clear it for new events."""

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    rotated = path.with_name(f"{path.stem}_{ts}{path.suffix}")
    path.rename(rotated)
    gz_path = rotated.with_suffix(rotated.suffix + ".gz")
    with open(rotated, "rb") as src, gzip.open(gz_path, "wb") as dst:
        shutil.copyfileobj(src, dst)
    rotated.unlink()


def append_event(
    dest: str | Path | List[Dict[str, Any]], event_type: str, data: Any, timestamp: float | None = None
) -> None:
    """Append an event to ``dest`` which may be a path or in-memory list."""

    event = {
        "time": time.time() if timestamp is None else timestamp,
        "event_type": event_type,
        "data": data,
    }
    if isinstance(dest, list):
        dest.append(event)
        return

    p = Path(dest)
    if not p.parent.exists():
        p.parent.mkdir(parents=True, exist_ok=True)

    if p.exists() and p.stat().st_size >= _log_retention_bytes():
        _rotate_log(p)

    with p.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(event, ensure_ascii=False) + "\n")


def iter_events(path: str | Path) -> Iterator[Dict[str, Any]]:
    """Yield events from ``path`` in the order they were logged."""

    p = Path(path)
    if not p.exists():
        return

    with p.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            yield event


class EventLog:
    """Destination for gameplay events: a file path, or a list when ``path`` is ``None``."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self.events: List[Dict[str, Any]] = []

    def append(self, event_type: str, data: Any) -> None:
        append_event(self.path if self.path is not None else self.events, event_type, data)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        if self.path is None:
            yield from self.events
        else:
            yield from iter_events(self.path)

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self if e["event_type"] == event_type]


__all__ = [
    "EventLog",
    "append_event",
    "iter_events",
    "HARVEST",
    "CRAFT",
    "DEPOSIT",
    "COMBAT_KILL",
    "DEATH",
]
