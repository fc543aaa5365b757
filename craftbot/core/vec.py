"""Immutable 3D vector used for positions throughout craftbot."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable


@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float

    @classmethod
    def of(cls, value: Any) -> "Vec3":
        """Coerce ``value`` (Vec3, mapping or 3-sequence) into a :class:`Vec3`."""

        if isinstance(value, Vec3):
            return value
        if isinstance(value, dict):
            return cls(float(value["x"]), float(value["y"]), float(value["z"]))
        x, y, z = value
        return cls(float(x), float(y), float(z))

    def offset(self, dx: float, dy: float, dz: float) -> "Vec3":
        return Vec3(self.x + dx, self.y + dy, self.z + dz)

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2
        )

    def floored(self) -> "Vec3":
        return Vec3(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def scaled(self, factor: float) -> "Vec3":
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalized(self) -> "Vec3":
        """Return a unit vector, or the zero vector when length is zero."""

        n = self.length()
        if n == 0:
            return Vec3(0.0, 0.0, 0.0)
        return Vec3(self.x / n, self.y / n, self.z / n)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}

    def __iter__(self) -> Iterable[float]:
        return iter((self.x, self.y, self.z))

    def __str__(self) -> str:
        return f"({self.x:.1f}, {self.y:.1f}, {self.z:.1f})"


__all__ = ["Vec3"]
