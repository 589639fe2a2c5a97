"""Append-only event log shared with the presentation layer."""

import logging
import threading
from typing import List

from pubsub import pub

logger = logging.getLogger(__name__)

LOG_TOPIC = "session.log"


class EventLog:
    """Ordered, append-only sequence of human-readable progress lines.

    Lines are never truncated or reordered. Each append is published on
    ``LOG_TOPIC`` so a renderer can refresh without polling.
    """

    def __init__(self, topic: str = LOG_TOPIC):
        self.topic = topic
        self._lines: List[str] = []
        self._lock = threading.Lock()

    def append(self, message: str) -> None:
        """Append one or more lines (split on newlines) and publish them."""
        new_lines = message.rstrip("\n").split("\n") if message else [""]
        with self._lock:
            self._lines.extend(new_lines)
        for line in new_lines:
            logger.info(f"[event] {line}")
            pub.sendMessage(self.topic, line=line)

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    @property
    def text(self) -> str:
        """Full accumulated text, one line per entry."""
        with self._lock:
            return "".join(f"{line}\n" for line in self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)
