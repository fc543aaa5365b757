"""Throttled outbound chat.

Servers kick clients that talk too fast, so every outbound line goes through a
queue that the scheduler drains one message per ``message_delay`` seconds.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, List

from ..config import CONFIG, ChatConfig
from ..core.errors import CraftbotError
from ..core.world import World


logger = logging.getLogger(__name__)

# Longest line most servers accept.
MAX_MESSAGE_LENGTH = 256


class ChatRelay:
    def __init__(self, world: World, config: ChatConfig | None = None) -> None:
        self.world = world
        self.config = config or CONFIG.chat
        self._queue: Deque[str] = deque()
        self.sent: List[str] = []

    def say(self, message: str) -> None:
        """Queue ``message`` for sending; long lines are split."""

        text = str(message).strip()
        while text:
            self._queue.append(text[:MAX_MESSAGE_LENGTH])
            text = text[MAX_MESSAGE_LENGTH:]

    @property
    def pending(self) -> List[str]:
        return list(self._queue)

    async def flush_one(self) -> bool:
        """Send the oldest queued message. Returns ``False`` if none was queued."""

        if not self._queue:
            return False
        message = self._queue.popleft()
        try:
            await self.world.chat(message)
        except CraftbotError as exc:
            logger.error("Error sending message: %s", exc)
            return True
        self.sent.append(message)
        logger.debug("Sent chat: %s", message)
        return True

    async def drain(self) -> None:
        """Send everything queued, pausing ``message_delay`` between lines."""

        while await self.flush_one():
            if self._queue:
                await asyncio.sleep(self.config.message_delay)


__all__ = ["MAX_MESSAGE_LENGTH", "ChatRelay"]
