"""Per-operation retry budget for rate-limited HTTP calls."""

from __future__ import annotations

from .config import RetryPolicy


class RetryBudget:
    """Attempt counter plus backoff schedule for one logical operation.

    Create one per operation and drop it when the operation finishes.
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self._policy = policy
        self.attempts = 0
        self.waited = 0.0

    @property
    def remaining(self) -> int:
        """Attempts still available after the current one."""
        return max(self._policy.max_attempts - self.attempts, 0)

    def start_attempt(self) -> int:
        """Record a new attempt and return its 1-based number."""
        self.attempts += 1
        return self.attempts

    def next_delay(self, retry_after: float | None = None) -> float | None:
        """Return the wait before the next attempt, or None when exhausted.

        A server-supplied ``retry_after`` is never shortened. If honouring it
        would exceed ``max_total_wait`` the budget is exhausted instead.
        """
        if self.remaining <= 0:
            return None

        if retry_after is not None and retry_after >= 0:
            delay = float(retry_after)
        else:
            delay = self._policy.backoff(self.attempts)

        if self.waited + delay > self._policy.max_total_wait:
            return None

        self.waited += delay
        return delay
