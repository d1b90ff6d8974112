"""Append-only history of completed forecasts for one session."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable, List

from app.domain import HistoryEntry, LedgerAggregate, SortOrder
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/ledger")


class HistoryLedger:
    """Newest-first list of ``HistoryEntry`` objects with derived aggregates."""

    def __init__(self, entries: Iterable[HistoryEntry] | None = None) -> None:
        self._entries: List[HistoryEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HistoryLedger):
            return NotImplemented
        return self._entries == other._entries

    @property
    def entries(self) -> List[HistoryEntry]:
        """Stored order (most recent append first); a copy, safe to mutate."""
        return list(self._entries)

    def append(
        self,
        *,
        date: str,
        prediction: int,
        weather: str,
        temperature: float,
        timestamp: datetime | None = None,
    ) -> HistoryEntry:
        """Record a completed forecast at the front of the ledger and return it."""
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            date=date,
            prediction=prediction,
            weather=weather,
            temperature=temperature,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._entries.insert(0, entry)
        logger.debug("Appended history entry", extra={"entry_id": entry.id, "count": len(self._entries)})
        return entry

    def clear(self) -> None:
        """Drop every entry."""
        removed = len(self._entries)
        self._entries.clear()
        logger.debug("Cleared history", extra={"removed": removed})

    def sorted_view(self, order: SortOrder | str = SortOrder.NEWEST) -> List[HistoryEntry]:
        """Return entries ordered by timestamp without touching stored order."""
        order = SortOrder(order)
        return sorted(
            self._entries,
            key=lambda entry: entry.timestamp,
            reverse=order is SortOrder.NEWEST,
        )

    def aggregate(self) -> LedgerAggregate:
        """Count, mean prediction (0 when empty) and the latest prediction."""
        if not self._entries:
            return LedgerAggregate(count=0, mean=0.0, latest=None)
        total = sum(entry.prediction for entry in self._entries)
        return LedgerAggregate(
            count=len(self._entries),
            mean=total / len(self._entries),
            latest=self._entries[0].prediction,
        )
