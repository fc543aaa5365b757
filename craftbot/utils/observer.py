"""Runtime observability helpers."""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List

from ..core.state import AgentState
from ..core.world import World


logger = logging.getLogger(__name__)

# Rolling history of the last 100 poll durations in seconds, per poll name
_POLL_HISTORY_LEN = 100
_poll_durations: Dict[str, Deque[float]] = {}


def record_poll(name: str, duration: float) -> None:
    """Append a poll ``duration`` in seconds to the rolling history of ``name``."""

    _poll_durations.setdefault(name, deque(maxlen=_POLL_HISTORY_LEN)).append(duration)


def poll_stats() -> Dict[str, Dict[str, float]]:
    """Average and worst duration per poll, in milliseconds."""

    stats = {}
    for name, durations in _poll_durations.items():
        if not durations:
            continue
        stats[name] = {
            "avg_ms": sum(durations) / len(durations) * 1000,
            "max_ms": max(durations) * 1000,
            "samples": len(durations),
        }
    return stats


def build_snapshot(world: World, state: AgentState) -> Dict[str, Any]:
    """Combine the agent snapshot with live vitals and position."""

    data = state.snapshot()
    data["position"] = world.position.to_dict()
    data["health"] = world.health
    data["food"] = world.food
    data["polls"] = poll_stats()
    return data


def log_snapshot(world: World, state: AgentState) -> Dict[str, Any]:
    """Log a one-line status summary and return the full snapshot."""

    data = build_snapshot(world, state)
    task = data["task"]["description"] if data["task"] else "idle"
    stats = data["statistics"]
    logger.info(
        "Snapshot: mood=%s task=%s health=%.0f food=%.0f logs=%d plants=%d kills=%d uptime=%ds",
        data["mood"],
        task,
        data["health"],
        data["food"],
        stats["logs_chopped"],
        stats["plants_harvested"],
        stats["mobs_killed"],
        int(data["uptime"]),
    )
    return data


def dump_state(world: World, state: AgentState, path: str | Path) -> None:
    """Write the snapshot to ``path`` as JSON for offline inspection."""

    data = build_snapshot(world, state)
    p = Path(path)
    if not p.parent.exists():
        p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2)


def recent_events(log: List[Dict[str, Any]], limit: int = 10) -> List[Dict[str, Any]]:
    return log[-limit:]


__all__ = [
    "record_poll",
    "poll_stats",
    "build_snapshot",
    "log_snapshot",
    "dump_state",
    "recent_events",
]
