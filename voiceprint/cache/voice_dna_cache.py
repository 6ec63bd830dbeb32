"""
Two-tier cache for persisted voice fingerprints.

L1 is an in-process dict of ``CacheEntry`` objects bounded by
``CacheConfig.max_entries`` and ``CacheConfig.ttl_seconds``.  L2 is the
persistent store (normally :class:`~voiceprint.database.SupabaseDB`).

Per-user record lifecycle::

    absent -> cached-fresh -> cached-stale -> evicted / refetched

Store failures never reach the caller: every store call runs under a
deadline, and a failed or timed-out call is logged and turned into a
cache miss (``None``, ``{}`` or ``[]``).

The cache is process-local.  Several processes sharing one store will
diverge until each refetches after its own TTL expiry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from voiceprint.analysis.vectors import cosine_similarity
from voiceprint.config import CacheConfig
from voiceprint.exceptions import (
    StoreUnavailableError,
    ValidationError,
    VectorLengthMismatchError,
)
from voiceprint.logging.component_logger import ComponentLogger
from voiceprint.models import (
    CacheEntry,
    FeatureStats,
    VoiceDNA,
    create_default_stats,
    merge_stats,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VoiceDNACache:
    """Memory (L1) + persistent store (L2) cache of ``VoiceDNA`` records.

    Args:
        store: Object exposing ``get_voice_dna``, ``upsert_voice_dna``,
            ``batch_get_voice_dna`` and ``list_voice_vectors_except``
            coroutines.
        config: Capacity, TTL, EMA and deadline settings.
        clock: Monotonic time source in seconds.  Tests inject a fake.
        structured_log: Optional structured event log for store failures
            and profile updates.
    """

    def __init__(
        self,
        store: Any,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        structured_log: Optional[ComponentLogger] = None,
    ) -> None:
        self.store = store
        self.config = config or CacheConfig()
        self._clock = clock
        self._log = structured_log

        self._entries: Dict[str, CacheEntry] = {}
        # user_id -> (lock, holders + waiters)
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

        self._sweep_task: Optional["asyncio.Task[None]"] = None
        self._running = False

    # ==================================================================
    # READ / WRITE
    # ==================================================================

    async def get(self, user_id: str) -> Optional[VoiceDNA]:
        """Return the user's record, or ``None`` on miss or store failure."""
        try:
            return await self._lookup(user_id)
        except StoreUnavailableError as exc:
            await self._report_store_failure(exc, user_id)
            return None

    async def save(self, record: VoiceDNA) -> Optional[VoiceDNA]:
        """Upsert *record* to the store and mirror it into L1.

        Returns:
            The stored record, or ``None`` if the store call failed.
        """
        try:
            return await self._persist(record)
        except StoreUnavailableError as exc:
            await self._report_store_failure(exc, record.user_id)
            return None

    async def update(
        self,
        user_id: str,
        new_vector: Sequence[float],
        new_stats: Optional[FeatureStats] = None,
    ) -> Optional[VoiceDNA]:
        """Fold a new observation into the user's record.

        A user without a record gets a fresh one with confidence
        ``initial_confidence`` and one analysed sample.  An existing record
        is blended with an exponential moving average of rate ``ema_alpha``,
        its stats merged field by field, its sample count incremented and
        its confidence raised by ``confidence_step`` (capped at 1).

        Concurrent updates for the same user run one after another.

        Returns:
            The stored record, or ``None`` if the store was unavailable.
        """
        async with self._user_lock(user_id):
            try:
                existing = await self._lookup(user_id)
                if existing is None:
                    record = VoiceDNA(
                        user_id=user_id,
                        dna_vector=[float(v) for v in new_vector],
                        feature_stats=create_default_stats(new_stats),
                        confidence=self.config.initial_confidence,
                        samples_analyzed=1,
                    )
                else:
                    record = VoiceDNA(
                        id=existing.id,
                        user_id=user_id,
                        dna_vector=self._blend(user_id, existing.dna_vector, new_vector),
                        feature_stats=merge_stats(existing.feature_stats, new_stats),
                        confidence=min(
                            1.0, existing.confidence + self.config.confidence_step
                        ),
                        samples_analyzed=existing.samples_analyzed + 1,
                        created_at=existing.created_at,
                    )
                stored = await self._persist(record)
            except StoreUnavailableError as exc:
                await self._report_store_failure(exc, user_id)
                return None

        if self._log is not None:
            await self._log.info(
                "Voice DNA updated",
                user_id=user_id,
                data={
                    "samples_analyzed": stored.samples_analyzed,
                    "confidence": stored.confidence,
                },
            )
        return stored

    async def batch_get(self, user_ids: Sequence[str]) -> Dict[str, VoiceDNA]:
        """Return records for many users, fetching L1 misses in one query.

        Users without a record are absent from the result.  On store
        failure only the L1 hits are returned.
        """
        result: Dict[str, VoiceDNA] = {}
        uncached: List[str] = []

        for user_id in dict.fromkeys(user_ids):
            entry = self._fresh_entry(user_id)
            if entry is not None:
                entry.access_count += 1
                result[user_id] = entry.data
            else:
                uncached.append(user_id)

        if not uncached:
            return result

        try:
            records = await self._call_store(
                "batch_get_voice_dna", lambda: self.store.batch_get_voice_dna(uncached)
            )
        except StoreUnavailableError as exc:
            await self._report_store_failure(exc)
            return result

        for record in records:
            self._put(record.user_id, record)
            result[record.user_id] = record

        logger.debug(
            "Batch get: %d from memory, %d from store", len(result) - len(records), len(records)
        )
        return result

    # ==================================================================
    # SIMILARITY
    # ==================================================================

    async def find_similar_profiles(
        self, user_id: str, threshold: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Find other users whose DNA vector is close to *user_id*'s.

        Scans every stored vector linearly.

        Returns:
            ``[{"user_id": ..., "similarity": ...}]`` with similarity at or
            above *threshold*, most similar first.  Empty when the user has
            no record or the store is unavailable.
        """
        if threshold is None:
            threshold = self.config.similar_profile_threshold

        target = await self.get(user_id)
        if target is None:
            return []

        try:
            candidates = await self._call_store(
                "list_voice_vectors_except",
                lambda: self.store.list_voice_vectors_except(user_id),
            )
        except StoreUnavailableError as exc:
            await self._report_store_failure(exc, user_id)
            return []

        matches = [
            {"user_id": other_id, "similarity": cosine_similarity(target.dna_vector, vector)}
            for other_id, vector in candidates
        ]
        matches = [m for m in matches if m["similarity"] >= threshold]
        matches.sort(key=lambda m: m["similarity"], reverse=True)
        return matches

    @staticmethod
    def calculate_similarity(dna_a: VoiceDNA, dna_b: VoiceDNA) -> float:
        """Cosine similarity of two records' DNA vectors."""
        return cosine_similarity(dna_a.dna_vector, dna_b.dna_vector)

    # ==================================================================
    # MAINTENANCE
    # ==================================================================

    def invalidate_user(self, user_id: str) -> None:
        """Drop *user_id* from L1.  The stored record is untouched."""
        self._entries.pop(user_id, None)

    def clear(self) -> None:
        """Drop every L1 entry."""
        self._entries.clear()

    def get_stats(self) -> Dict[str, float]:
        """L1 statistics: size, hit rate and mean access count."""
        entries = list(self._entries.values())
        total_access = sum(e.access_count for e in entries)
        count = len(entries)
        return {
            "memory_size": count,
            "hit_rate": total_access / (total_access + count) if count else 0.0,
            "avg_access_count": total_access / count if count else 0.0,
        }

    def cleanup_expired(self) -> int:
        """Remove L1 entries older than the TTL.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        expired = [
            user_id
            for user_id, entry in self._entries.items()
            if now - entry.timestamp > self.config.ttl_seconds
        ]
        for user_id in expired:
            del self._entries[user_id]

        if expired:
            logger.debug("Removed %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def entry(self, user_id: str) -> Optional[CacheEntry]:
        """Raw L1 entry for *user_id*, fresh or not."""
        return self._entries.get(user_id)

    # ==================================================================
    # LIFECYCLE
    # ==================================================================

    def start(self) -> None:
        """Launch the background TTL sweep on the running event loop."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._running = True
        self._sweep_task = asyncio.create_task(self._sweep_loop())
        logger.info(
            "Cache sweep started (interval=%.0fs, ttl=%.0fs)",
            self.config.cleanup_interval_seconds,
            self.config.ttl_seconds,
        )

    async def stop(self) -> None:
        """Cancel the background sweep and wait for it to finish."""
        self._running = False
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cache sweep stopped")

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _sweep_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.config.cleanup_interval_seconds)
            except asyncio.CancelledError:
                break
            self.cleanup_expired()

    # ==================================================================
    # INTERNALS
    # ==================================================================

    async def _lookup(self, user_id: str) -> Optional[VoiceDNA]:
        """L1 then L2 read.  Raises ``StoreUnavailableError`` on store failure."""
        entry = self._fresh_entry(user_id)
        if entry is not None:
            entry.access_count += 1
            return entry.data

        record = await self._call_store(
            "get_voice_dna", lambda: self.store.get_voice_dna(user_id)
        )
        if record is not None:
            self._put(user_id, record)
        return record

    async def _persist(self, record: VoiceDNA) -> VoiceDNA:
        stored = await self._call_store(
            "upsert_voice_dna", lambda: self.store.upsert_voice_dna(record)
        )
        self._put(record.user_id, stored)
        return stored

    async def _call_store(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run one store coroutine under the configured deadline.

        Raises:
            StoreUnavailableError: On timeout or any store error other than
                input validation.
            ValidationError: Passed through unchanged.
        """
        try:
            return await asyncio.wait_for(call(), timeout=self.config.store_timeout_seconds)
        except ValidationError:
            raise
        except asyncio.TimeoutError as exc:
            timeout = TimeoutError(
                f"no response within {self.config.store_timeout_seconds}s"
            )
            raise StoreUnavailableError(operation, timeout) from exc
        except Exception as exc:
            raise StoreUnavailableError(operation, exc) from exc

    def _fresh_entry(self, user_id: str) -> Optional[CacheEntry]:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        if self._clock() - entry.timestamp < self.config.ttl_seconds:
            return entry
        return None

    def _put(self, user_id: str, record: VoiceDNA) -> None:
        """Insert or refresh an L1 entry, evicting the oldest when full."""
        if user_id not in self._entries and len(self._entries) >= self.config.max_entries:
            self._evict_oldest()
        self._entries[user_id] = CacheEntry(data=record, timestamp=self._clock())

    def _evict_oldest(self) -> None:
        oldest = min(self._entries, key=lambda u: self._entries[u].timestamp)
        del self._entries[oldest]
        logger.debug("Evicted cache entry for %s", oldest)

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Hold the per-user update lock.

        The lock is shared while any coroutine holds or awaits it and is
        dropped once the last one leaves.
        """
        lock, users = self._locks.get(user_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[user_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[user_id]
            if users == 1:
                del self._locks[user_id]
            else:
                self._locks[user_id] = (lock, users - 1)

    def _blend(
        self, user_id: str, existing: Sequence[float], new: Sequence[float]
    ) -> List[float]:
        """EMA of two vectors; a length mismatch yields *new* unchanged."""
        if len(existing) != len(new):
            mismatch = VectorLengthMismatchError(len(existing), len(new))
            logger.warning("%s for user %s, using new vector", mismatch, user_id)
            return [float(v) for v in new]

        alpha = self.config.ema_alpha
        return [old * (1 - alpha) + value * alpha for old, value in zip(existing, new)]

    async def _report_store_failure(
        self, exc: StoreUnavailableError, user_id: Optional[str] = None
    ) -> None:
        logger.warning("Voice DNA store unavailable: %s", exc)
        if self._log is not None:
            await self._log.error(
                "Voice DNA store unavailable",
                error=exc,
                user_id=user_id,
                data={"operation": exc.operation},
            )


__all__ = ["VoiceDNACache"]
