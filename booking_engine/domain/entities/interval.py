from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open range ``[start, end)`` between two timezone-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Interval bounds must be timezone-aware instants")
        if self.end <= self.start:
            raise ValueError(f"Interval end {self.end.isoformat()} must be after start {self.start.isoformat()}")

    def overlaps(self, other: Interval) -> bool:
        # Touching bounds (one ends exactly when the other starts) do not overlap.
        return self.start < other.end and other.start < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start
