"""Result models for sweeps run by the hub client."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RenewalResult:
    """Outcome of a subscription renewal sweep."""

    subscribe_count: int = 0
    error_count: int = 0

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"RenewalResult(subscribed={self.subscribe_count}, errors={self.error_count})"


@dataclass
class CleanResult:
    """Outcome of a retention sweep."""

    removed_feed_count: int = 0
