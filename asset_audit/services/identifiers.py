"""Date-scoped record identifiers: DDMMYYYY-SSSSS.

There is no server-side counter. The next sequence for today is derived
by scanning every existing id, keeping those with today's prefix and
taking the highest suffix plus one. Two processes that scan before either
writes will compute the same sequence; the gateway's duplicate-key retry
and the re-check below narrow that window but do not close it.
"""

from __future__ import annotations

import logging
import warnings
from datetime import date, datetime
from typing import Callable, Protocol

from asset_audit.errors import AllocationFallback
from asset_audit.schemas.lifecycle import Allocation

logger = logging.getLogger(__name__)

SEQUENCE_WIDTH = 5
# Sequences may outgrow SEQUENCE_WIDTH; fallback suffixes are 13-digit epoch ms.
MAX_SEQUENCE_DIGITS = 9


class RecordIndex(Protocol):
    async def list_ids(self) -> list[str]: ...

    async def exists(self, record_id: str) -> bool: ...


def date_prefix(day: date) -> str:
    return f"{day.day:02d}{day.month:02d}{day.year:04d}"


def format_identifier(prefix: str, sequence: int) -> str:
    return f"{prefix}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(identifier: str, prefix: str) -> int | None:
    """Sequence suffix of an id carrying this prefix, else None (fallback ids included)."""
    head, sep, tail = identifier.partition("-")
    if head != prefix or not sep or not tail.isdigit():
        return None
    if len(tail) > MAX_SEQUENCE_DIGITS:
        return None
    return int(tail)


class IdentifierAllocator:
    def __init__(
        self,
        index: RecordIndex,
        collision_retries: int = 3,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.index = index
        self.collision_retries = collision_retries
        self._clock = clock
        # Ids handed out by this process that may not be written yet.
        self._issued: dict[str, int] = {}
        self._last_fallback_ms = 0

    def _highest_issued(self, prefix: str) -> int:
        return self._issued.get(prefix, 0)

    def _remember(self, prefix: str, sequence: int) -> None:
        if prefix not in self._issued:
            self._issued.clear()
        self._issued[prefix] = max(sequence, self._issued.get(prefix, 0))

    async def next_sequence(self, prefix: str) -> int:
        ids = await self.index.list_ids()
        highest = self._highest_issued(prefix)
        for identifier in ids:
            seq = parse_sequence(identifier, prefix)
            if seq is not None and seq > highest:
                highest = seq
        return highest + 1

    async def allocate(self) -> Allocation:
        """Next id for today. Never raises; degrades to a timestamp id."""
        now = self._clock()
        prefix = date_prefix(now)
        try:
            for attempt in range(self.collision_retries + 1):
                seq = await self.next_sequence(prefix)
                candidate = format_identifier(prefix, seq)
                self._remember(prefix, seq)
                if not await self.index.exists(candidate):
                    return Allocation(id=candidate, sequence=seq)
                logger.warning(
                    "Identifier %s was taken between scan and check (attempt %d), rescanning",
                    candidate, attempt + 1,
                )
            raise RuntimeError(f"No free identifier after {self.collision_retries + 1} scans")
        except Exception as e:
            return self._fallback(prefix, now, e)

    def _fallback(self, prefix: str, now: datetime, cause: Exception) -> Allocation:
        ms = int(now.timestamp() * 1000)
        if ms <= self._last_fallback_ms:
            ms = self._last_fallback_ms + 1
        self._last_fallback_ms = ms
        identifier = f"{prefix}-{ms}"
        msg = f"Sequence allocation failed ({cause}); using fallback id {identifier}"
        logger.warning(msg)
        warnings.warn(msg, AllocationFallback, stacklevel=3)
        return Allocation(id=identifier, sequence=None, fallback=True)
