"""Named action cooldowns measured against a monotonic clock."""

from __future__ import annotations

import time
from typing import Callable, Dict


class CooldownTracker:
    """Track when named actions (``melee``, ``bow``, ``eat`` ...) may fire again."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # Mapping of action -> time it last fired
        self._last: Dict[str, float] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def trigger(self, action: str) -> None:
        """Record that ``action`` fired now."""

        self._last[action] = self._clock()

    def available(self, action: str, cooldown: float) -> bool:
        """Return ``True`` if at least ``cooldown`` seconds passed since ``action``."""

        last = self._last.get(action)
        if last is None:
            return True
        return self._clock() - last >= cooldown

    def try_trigger(self, action: str, cooldown: float) -> bool:
        """Fire ``action`` if it is available and report whether it fired."""

        if not self.available(action, cooldown):
            return False
        self.trigger(action)
        return True

    def last(self, action: str) -> float | None:
        return self._last.get(action)

    def clear(self, action: str | None = None) -> None:
        """Forget ``action`` (or every action)."""

        if action is None:
            self._last.clear()
        else:
            self._last.pop(action, None)


__all__ = ["CooldownTracker"]
