"""Structured error hierarchy for craftbot."""

from __future__ import annotations


class CraftbotError(Exception):
    """Base for all craftbot errors."""

    pass


class NavigationError(CraftbotError):
    """Movement toward a goal failed."""

    reason = "error"


class NavigationTimeout(NavigationError):
    """An attempt ran past its timeout."""

    reason = "timeout"


class NoPathError(NavigationError):
    """The pathfinder could not find a route."""

    reason = "no_path"


class StuckError(NavigationError):
    """The bot stopped making progress toward its goal."""

    reason = "stuck"


class NavigationCancelled(NavigationError):
    """A newer movement request or ``stop`` preempted this one."""

    reason = "cancelled"


class ActionError(CraftbotError):
    """A world action (dig, equip, craft, ...) was rejected."""

    pass


class ContainerFullError(ActionError):
    """A container refused some or all of a deposit."""

    def __init__(self, message: str = "Container is full", deposited: int = 0):
        self.deposited = deposited
        super().__init__(message)


class PreconditionError(CraftbotError):
    """An operation was invoked without a required input."""

    pass


class BridgeError(CraftbotError):
    """Communication with the remote game bridge failed."""

    pass


__all__ = [
    "CraftbotError",
    "NavigationError",
    "NavigationTimeout",
    "NoPathError",
    "StuckError",
    "NavigationCancelled",
    "ActionError",
    "ContainerFullError",
    "PreconditionError",
    "BridgeError",
]
