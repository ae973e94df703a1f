from __future__ import annotations

from dataclasses import dataclass

from easypanel_gateway.trpc.errors import UpstreamError


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Bounded retry: an expired upstream session (401) earns one more attempt
    with a fresh token. No backoff.
    """

    max_attempts: int = 2
    retry_statuses: frozenset[int] = frozenset({401})

    def should_retry(self, error: UpstreamError, *, attempt: int) -> bool:
        # `attempt` is 1-based: the attempt that just failed.
        return attempt < self.max_attempts and error.status in self.retry_statuses
