"""Time-bounded cache for successful tool results."""

from __future__ import annotations

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from agentflow.tools.models import ToolExecutionResult

logger = logging.getLogger(__name__)


def cache_key(name: str, params: dict[str, Any]) -> str:
    return f"{name}:{json.dumps(params, sort_keys=True, default=str, ensure_ascii=False)}"


class ResultCache:
    """LRU cache whose entries expire ``ttl_seconds`` after being stored.

    Only successful results are stored; callers decide per tool whether the
    cache is consulted at all.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, ToolExecutionResult]] = OrderedDict()
        self.stats = {"hits": 0, "misses": 0, "evictions": 0}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> ToolExecutionResult | None:
        entry = self._entries.get(key)
        if entry is None:
            self.stats["misses"] += 1
            return None
        stored_at, result = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            self.stats["misses"] += 1
            logger.debug("tool_cache_expired", extra={"cache_key": key})
            return None
        self._entries.move_to_end(key)
        self.stats["hits"] += 1
        return result

    def set(self, key: str, result: ToolExecutionResult) -> None:
        if not result.success:
            return
        self._entries[key] = (self._clock(), result)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            self.stats["evictions"] += 1

    def invalidate(self, tool_name: str | None = None) -> int:
        """Drop entries for one tool, or everything when ``tool_name`` is None."""
        if tool_name is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed
        prefix = f"{tool_name}:"
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)
