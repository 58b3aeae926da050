"""
Tag filtering and random sampling of catalog records.
"""

import random
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from src.core.catalog.models import VideoRecord


@dataclass
class SampleResult:
    """Records drawn for one request."""
    records: list[VideoRecord]
    requested: int

    @property
    def partial(self) -> bool:
        """True when fewer records exist than were requested."""
        return len(self.records) < self.requested

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[VideoRecord]:
        return iter(self.records)


def matches_tag(record: VideoRecord, tag: str) -> bool:
    # Substring match on the whole tags field: "arm" also matches "warm-up".
    return tag.lower() in (record.tags or "").lower()


def filter_by_tag(records: Sequence[VideoRecord], tag: str) -> list[VideoRecord]:
    """Records whose tags field contains tag, case-insensitive."""
    return [record for record in records if matches_tag(record, tag)]


def sample(
    candidates: Sequence[VideoRecord],
    count: int,
    rng: Optional[random.Random] = None,
) -> SampleResult:
    """
    Draw up to count records uniformly at random without replacement.

    Args:
        candidates: Records to draw from
        count: Requested number of records
        rng: Random source (default: module-level generator)

    Returns:
        SampleResult, partial when len(candidates) < count
    """
    rng = rng or random
    k = max(0, min(count, len(candidates)))
    return SampleResult(records=rng.sample(list(candidates), k), requested=count)
