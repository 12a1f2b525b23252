"""Shared exponential backoff.

Tool retries and any other adapter that needs to wait between attempts use
this helper so the delay formula lives in one place.
"""

from __future__ import annotations


def backoff_delay(attempt: int, backoff_base: float = 1.0, max_delay: float = 5.0) -> float:
    """Return ``min(max_delay, backoff_base * 2^attempt)`` in seconds.

    Args:
        attempt: Current attempt number (0-indexed).
        backoff_base: Base delay in seconds.
        max_delay: Hard cap for a single delay in seconds.
    """
    return min(max_delay, max(0.0, backoff_base * (2**attempt)))

