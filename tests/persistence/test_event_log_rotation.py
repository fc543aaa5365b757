import gzip
import json
from pathlib import Path

import craftbot.persistence.event_log as evlog
from craftbot.persistence.event_log import HARVEST, EventLog, append_event, iter_events


def test_append_and_iter_events(tmp_path: Path) -> None:
    log = tmp_path / "events.jsonl"
    append_event(log, "HARVEST", {"item": "oak_log"}, timestamp=1)
    append_event(log, "DEPOSIT", {"count": 64}, timestamp=2)
    events = list(iter_events(log))
    assert events == [
        {"time": 1, "event_type": "HARVEST", "data": {"item": "oak_log"}},
        {"time": 2, "event_type": "DEPOSIT", "data": {"count": 64}},
    ]


def test_event_log_class_on_disk(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "log.jsonl"
    log = EventLog(path)
    log.append(HARVEST, {"item": "sugar_cane", "count": 2})
    log.append("DEATH", {})
    assert path.exists()
    assert [e["event_type"] for e in log] == [HARVEST, "DEATH"]
    assert log.of_type(HARVEST)[0]["data"]["count"] == 2


def test_in_memory_event_log() -> None:
    log = EventLog()
    log.append("CRAFT", {"item": "wooden_axe"})
    assert log.path is None
    assert log.events[0]["data"] == {"item": "wooden_axe"}


def test_iter_events_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "missing.jsonl"
    assert list(iter_events(path)) == []


def test_iter_events_skips_corrupt_lines(tmp_path: Path) -> None:
    path = tmp_path / "events.jsonl"
    path.write_text('{"time": 1, "event_type": "A", "data": {}}\nnot json\n\n', encoding="utf-8")
    assert [e["event_type"] for e in iter_events(path)] == ["A"]


def test_log_rotation(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "events.jsonl"
    monkeypatch.setattr(evlog, "_log_retention_bytes", lambda: 100)
    for i in range(3):
        append_event(path, "test", {"n": i}, timestamp=0)

    gz_files = [p for p in tmp_path.iterdir() if p.suffix == ".gz"]
    assert len(gz_files) == 1
    with gzip.open(gz_files[0], "rt", encoding="utf-8") as fh:
        rotated = [json.loads(l) for l in fh if l.strip()]
    assert [e["data"]["n"] for e in rotated] == [0, 1]
    remaining = list(iter_events(path))
    assert len(remaining) == 1 and remaining[0]["data"]["n"] == 2
