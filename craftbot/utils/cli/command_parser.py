"""Parse operator chat lines into commands, and read them from the console."""

from __future__ import annotations

import logging
import queue
import sys
import threading
from dataclasses import dataclass, field
from typing import List, Optional


logger = logging.getLogger(__name__)


@dataclass
class ChatCommand:
    """Result of parsing a chat line."""

    name: str
    args: List[str] = field(default_factory=list)
    username: Optional[str] = None


def parse_command(text: str, prefix: str = "", username: Optional[str] = None) -> Optional[ChatCommand]:
    """Return a :class:`ChatCommand` from ``text`` if it starts with ``prefix``."""

    text = text.strip()
    if prefix:
        if not text.startswith(prefix):
            return None
        text = text[len(prefix):]
    parts = text.split()
    if not parts:
        return None

    cmd = parts[0].lower()
    return ChatCommand(name=cmd, args=parts[1:], username=username)


# ---------------------------------------------------------------------------
# Console input (offline runs)
# ---------------------------------------------------------------------------
_console_queue: queue.Queue[str] = queue.Queue()
_console_stop_event = threading.Event()


def _console_thread_func() -> None:
    """Read stdin lines into the console queue until stopped or EOF."""

    logger.info("Console input started. Type commands and press Enter.")
    while not _console_stop_event.is_set():
        line = sys.stdin.readline()
        if not line:
            break
        line = line.strip()
        if line:
            _console_queue.put(line)
    logger.info("Console input stopped.")


def start_console_thread() -> threading.Thread:
    if _console_stop_event.is_set():
        _console_stop_event.clear()
    thread = threading.Thread(target=_console_thread_func, daemon=True, name="ConsoleInputThread")
    thread.start()
    return thread


def stop_console_thread() -> None:
    # readline() stays blocked until the next line; the daemon thread dies with the process.
    _console_stop_event.set()


def submit_console_line(line: str) -> None:
    _console_queue.put(line)


def poll_console_line() -> Optional[str]:
    """Return a console line from the internal queue if available, else ``None``."""

    try:
        return _console_queue.get_nowait()
    except queue.Empty:
        return None


__all__ = [
    "ChatCommand",
    "parse_command",
    "start_console_thread",
    "stop_console_thread",
    "submit_console_line",
    "poll_console_line",
]
