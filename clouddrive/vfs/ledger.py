"""Approximate running total of bytes held in the object store.

The total lives in a counter store as two strings, ``totalSize`` and
``lastRecalculated``. Mutations nudge it with non-atomic read-modify-write
adjustments, so concurrent writers can lose updates and the value drifts.
A full reconciliation scan is the only thing that produces an exact value;
it runs in the background when the counter is missing or stale.

States, as seen by :meth:`SizeLedger.get`:

* uninitialized: no ``totalSize`` yet. Reads return 0 and schedule a scan.
* stale: ``lastRecalculated`` missing or older than ``stale_after``. Reads
  return the cached value and schedule a scan.
* cached: reads return the stored value.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from clouddrive.lib import observability
from clouddrive.vfs.traversal import sum_sizes

if TYPE_CHECKING:
    from clouddrive.lib.counters.base import CounterStore
    from clouddrive.lib.deferred import DeferredTasks
    from clouddrive.lib.storage.base import ObjectStore

logger = logging.getLogger(__name__)

TOTAL_SIZE_KEY = "totalSize"
LAST_RECALCULATED_KEY = "lastRecalculated"
RECONCILE_TASK = "reconcile-total-size"
DEFAULT_STALE_AFTER = timedelta(hours=24)


@dataclass(frozen=True)
class LedgerReading:
    value: int
    as_of: datetime | None
    provisional: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_size(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return max(int(float(raw)), 0)
    except ValueError:
        logger.warning("Ignoring malformed %s value %r", TOTAL_SIZE_KEY, raw)
        return None


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring malformed %s value %r", LAST_RECALCULATED_KEY, raw)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class SizeLedger:
    """Eventually-consistent byte counter for one object store."""

    def __init__(
        self,
        counters: CounterStore,
        store: ObjectStore,
        deferred: DeferredTasks,
        *,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._counters = counters
        self._store = store
        self._deferred = deferred
        self.stale_after = stale_after
        self._clock = clock

    @property
    def counters(self) -> CounterStore:
        return self._counters

    async def get(self) -> LedgerReading:
        """Return the cached total, scheduling a reconciliation when needed.

        Never waits for the scan itself.
        """
        value = _parse_size(await self._counters.get(TOTAL_SIZE_KEY))
        if value is None:
            self.schedule_reconcile()
            return LedgerReading(value=0, as_of=None, provisional=True)

        as_of = _parse_timestamp(await self._counters.get(LAST_RECALCULATED_KEY))
        if as_of is None or self._clock() - as_of > self.stale_after:
            self.schedule_reconcile()
        return LedgerReading(value=value, as_of=as_of)

    async def peek(self) -> LedgerReading:
        """Return the stored total without ever scheduling a reconciliation."""
        value = _parse_size(await self._counters.get(TOTAL_SIZE_KEY))
        as_of = _parse_timestamp(await self._counters.get(LAST_RECALCULATED_KEY))
        return LedgerReading(value=value or 0, as_of=as_of, provisional=value is None)

    async def adjust(self, delta: int) -> int:
        """Add *delta* to the stored total, clamping at zero.

        Read-modify-write without a lock: two adjustments racing each other
        can lose one update.
        """
        current = _parse_size(await self._counters.get(TOTAL_SIZE_KEY)) or 0
        updated = max(current + delta, 0)
        await self._counters.put(TOTAL_SIZE_KEY, str(updated))
        logger.debug("Adjusted %s by %+d to %d", TOTAL_SIZE_KEY, delta, updated)
        return updated

    async def reconcile(self) -> int:
        """Scan the whole store, then overwrite the total and timestamp."""
        with observability.span("ledger.reconcile"):
            total = await sum_sizes(self._store)
            await self._counters.put(TOTAL_SIZE_KEY, str(total))
            await self._counters.put(LAST_RECALCULATED_KEY, self._clock().isoformat())
        logger.info("Reconciled %s: %d bytes", TOTAL_SIZE_KEY, total)
        return total

    def record(self, delta: int) -> None:
        """Apply *delta* in the background. Failures are only logged."""
        if delta:
            self._deferred.submit(self.adjust, delta)

    def schedule_reconcile(self) -> None:
        """Run :meth:`reconcile` in the background unless one is already pending."""
        self._deferred.submit(self.reconcile, name=RECONCILE_TASK)
