"""Operator settings persisted as a small JSON document.

The file holds ``home`` (coordinates or ``null``), ``autoattack`` and
``autofarm``. A missing file or key means the feature is disabled.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..core.vec import Vec3


logger = logging.getLogger(__name__)


def default_settings() -> Dict[str, Any]:
    return {"home": None, "autoattack": False, "autofarm": False}


class SettingsStore:
    """Read and write operator settings.

    With ``path=None`` the settings live in memory only, which is what the
    tests and the offline demo use.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._data = self._load()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _load(self) -> Dict[str, Any]:
        data = default_settings()
        if self.path is None or not self.path.exists():
            return data
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh) or {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error loading %s: %s", self.path, exc)
            return data
        data.update({k: raw[k] for k in data if k in raw})
        return data

    def _save(self) -> bool:
        if self.path is None:
            return True
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, indent=2)
        except OSError as exc:
            logger.error("Error saving %s: %s", self.path, exc)
            return False
        logger.debug("Saved settings to %s", self.path)
        return True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def home(self) -> Optional[Vec3]:
        raw = self._data.get("home")
        if not raw:
            return None
        return Vec3.of(raw)

    def set_home(self, position: Any) -> bool:
        pos = Vec3.of(position).floored()
        self._data["home"] = {"x": int(pos.x), "y": int(pos.y), "z": int(pos.z)}
        return self._save()

    @property
    def auto_defend(self) -> bool:
        return bool(self._data.get("autoattack", False))

    def set_auto_defend(self, enabled: bool) -> bool:
        self._data["autoattack"] = bool(enabled)
        return self._save()

    @property
    def auto_farm(self) -> bool:
        return bool(self._data.get("autofarm", False))

    def set_auto_farm(self, enabled: bool) -> bool:
        self._data["autofarm"] = bool(enabled)
        return self._save()

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)


__all__ = ["SettingsStore", "default_settings"]
