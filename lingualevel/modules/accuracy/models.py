"""
Accuracy history models.

Purpose
-------
Keep a bounded, newest-first log of per-message accuracy results and
derive the statistics the leveling layer needs from it: average accuracy,
XP total and a consistency score.

Consistency Score
-----------------
100 while there are fewer than three records. Otherwise, over the ten most
recent effective scores: max(0, 100 - 2 * population standard deviation),
rounded to two decimals. A learner scoring steadily stays near 100.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from lingualevel.modules.shared.constants import (
    CONSISTENCY_MIN_RECORDS,
    CONSISTENCY_STDDEV_WEIGHT,
    CONSISTENCY_WINDOW,
)

DEFAULT_HISTORY_SIZE = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AccuracyRecord:
    """
    Accuracy outcome of one learner message.

    Attributes
    ----------
    overall : float
        Raw overall accuracy, 0-100
    xp_gained : int
        XP awarded for the message
    timestamp : datetime
        When the message was scored (UTC)
    weighted_overall : Optional[float]
        Weighted accuracy, preferred over overall when present and non-zero
    """

    overall: float
    xp_gained: int = 0
    timestamp: datetime = field(default_factory=_utcnow)
    weighted_overall: Optional[float] = None

    @property
    def effective_score(self) -> float:
        return self.weighted_overall or self.overall

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "weighted_overall": self.weighted_overall,
            "xp_gained": self.xp_gained,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AccuracyRecord:
        return cls(
            overall=float(data["overall"]),
            xp_gained=int(data.get("xp_gained", 0)),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            weighted_overall=data.get("weighted_overall"),
        )


class AccuracyHistory:
    """Bounded newest-first history of AccuracyRecord entries."""

    def __init__(
        self,
        records: Optional[Iterable[AccuracyRecord]] = None,
        max_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._max_size = max_size
        self._records: List[AccuracyRecord] = list(records or [])[:max_size]

    def __len__(self) -> int:
        return len(self._records)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def records(self) -> List[AccuracyRecord]:
        """Copy of the records, newest first."""
        return list(self._records)

    @property
    def latest(self) -> Optional[AccuracyRecord]:
        return self._records[0] if self._records else None

    def add(self, record: AccuracyRecord) -> None:
        self._records.insert(0, record)
        del self._records[self._max_size :]

    def clear(self) -> None:
        self._records.clear()

    def average_accuracy(self) -> float:
        if not self._records:
            return 0.0
        total = sum(record.effective_score for record in self._records)
        return round(total / len(self._records), 2)

    def total_xp(self) -> int:
        return sum(record.xp_gained for record in self._records)

    def consistency_score(self) -> float:
        if len(self._records) < CONSISTENCY_MIN_RECORDS:
            return 100.0
        scores = [record.effective_score for record in self._records[:CONSISTENCY_WINDOW]]
        std_dev = statistics.pstdev(scores)
        return round(max(0.0, 100 - std_dev * CONSISTENCY_STDDEV_WEIGHT), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {"records": [record.to_dict() for record in self._records]}

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], max_size: int = DEFAULT_HISTORY_SIZE
    ) -> AccuracyHistory:
        return cls(
            (AccuracyRecord.from_dict(item) for item in data.get("records", [])),
            max_size=max_size,
        )
