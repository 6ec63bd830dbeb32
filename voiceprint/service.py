"""
Caller-facing API of the voice profile core.

``VoiceProfileService`` owns one cache, one bounded worker pool and the
analysis engines.  Feature extraction is CPU-bound, so every text-analysis
coroutine runs the work on the pool instead of the event loop.

Usage::

    service = await VoiceProfileService.create()
    service.start()
    try:
        traits = await service.create_fingerprint(samples)
        record = await service.learn_from_samples("user-123", samples)
    finally:
        await service.close()
"""

import asyncio
import contextlib
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncContextManager, Callable, Dict, List, Optional, Sequence, TypeVar

from voiceprint.analysis.features import FeatureExtractor
from voiceprint.analysis.fingerprint import FingerprintAggregator
from voiceprint.analysis.impact import VoiceImpactCalculator
from voiceprint.analysis.similarity import VoiceSimilarityEngine
from voiceprint.analysis.vectors import feature_stats_from_traits, traits_to_vector
from voiceprint.cache.voice_dna_cache import VoiceDNACache
from voiceprint.config import Settings, get_settings
from voiceprint.database import SupabaseDB
from voiceprint.logging.component_logger import ComponentLogger
from voiceprint.logging.models import LogComponent, LogLevel
from voiceprint.logging.voice_logger import VoiceLogger, init_logger
from voiceprint.models import (
    FeatureStats,
    SampleInput,
    StylometricMetrics,
    VoiceDNA,
    VoiceEvolution,
    VoiceImpact,
    VoiceprintTraits,
    VoiceSimilarity,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VoiceProfileService:
    """Single entry point for analysis, scoring and profile storage.

    Args:
        cache: The two-tier cache of persisted fingerprints.
        settings: Application settings.  Defaults to :func:`get_settings`.
        max_workers: Size of the extraction pool.  Defaults to
            ``settings.extraction_workers``.
        voice_logger: Optional structured event log.
    """

    def __init__(
        self,
        cache: VoiceDNACache,
        settings: Optional[Settings] = None,
        max_workers: Optional[int] = None,
        voice_logger: Optional[VoiceLogger] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache = cache

        self.extractor = FeatureExtractor(self.settings.extraction)
        self.aggregator = FingerprintAggregator(self.settings.extraction, self.extractor)
        self.similarity = VoiceSimilarityEngine(self.settings.similarity, self.aggregator)
        self.impact = VoiceImpactCalculator(self.settings.similarity.voice_safe_threshold)

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or self.settings.extraction_workers,
            thread_name_prefix="voiceprint",
        )
        self._log = (
            ComponentLogger(LogComponent.SERVICE, voice_logger)
            if voice_logger is not None
            else None
        )
        self._closed = False

    @classmethod
    async def create(
        cls,
        settings: Optional[Settings] = None,
        store: Any = None,
    ) -> "VoiceProfileService":
        """Build a service wired to Supabase and the structured log.

        Args:
            settings: Application settings.  Defaults to :func:`get_settings`.
            store: Persistent store.  When ``None``, a :class:`SupabaseDB` is
                created from ``SUPABASE_URL`` / ``SUPABASE_SERVICE_KEY``.

        Returns:
            A ready service.  Call :meth:`start` to launch the cache sweep.
        """
        settings = settings or get_settings()
        voice_logger = init_logger(
            log_dir=settings.log_dir,
            min_level=LogLevel.from_name(settings.log_level),
        )
        if store is None:
            store = await SupabaseDB.create()

        cache = VoiceDNACache(
            store,
            settings.cache,
            structured_log=ComponentLogger(LogComponent.CACHE, voice_logger),
        )
        return cls(cache, settings, voice_logger=voice_logger)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start background maintenance (the cache TTL sweep)."""
        self.cache.start()

    async def close(self) -> None:
        """Stop the cache sweep and shut down the worker pool."""
        if self._closed:
            return
        self._closed = True
        await self.cache.stop()
        self._executor.shutdown(wait=True)
        logger.info("Voice profile service closed")

    async def __aenter__(self) -> "VoiceProfileService":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # ANALYSIS
    # ------------------------------------------------------------------

    async def analyze(self, text: str) -> StylometricMetrics:
        """Extract stylometric metrics from one sample."""
        return await self._run(self.extractor.extract, text)

    async def create_fingerprint(self, samples: Sequence[SampleInput]) -> VoiceprintTraits:
        """Build a voice fingerprint from at least three samples."""
        async with self._timed("Creating fingerprint", data={"samples": len(samples)}):
            return await self._run(self.aggregator.create_fingerprint, samples)

    def compare_voices(self, a: VoiceprintTraits, b: VoiceprintTraits) -> int:
        """Weighted 0-100 similarity of two fingerprints."""
        return self.similarity.compare_voices(a, b)

    async def calculate_voice_similarity(
        self,
        original_text: str,
        modified_text: str,
        profile: Optional[VoiceprintTraits] = None,
    ) -> VoiceSimilarity:
        return await self._run(
            self.similarity.calculate_voice_similarity,
            original_text,
            modified_text,
            profile,
        )

    async def detect_voice_evolution(
        self,
        old_samples: Sequence[SampleInput],
        new_samples: Sequence[SampleInput],
    ) -> VoiceEvolution:
        return await self._run(
            self.similarity.detect_voice_evolution, old_samples, new_samples
        )

    async def estimate_impact(self, original_text: str, modified_text: str) -> VoiceImpact:
        """Instant voice impact and risk delta of a single edit."""
        return await self._run(self.impact.calculate, original_text, modified_text)

    # ------------------------------------------------------------------
    # PROFILE STORAGE
    # ------------------------------------------------------------------

    async def get_voice_dna(self, user_id: str) -> Optional[VoiceDNA]:
        return await self.cache.get(user_id)

    async def save_voice_dna(self, record: VoiceDNA) -> Optional[VoiceDNA]:
        return await self.cache.save(record)

    async def update_voice_dna(
        self,
        user_id: str,
        new_vector: Sequence[float],
        new_stats: Optional[FeatureStats] = None,
    ) -> Optional[VoiceDNA]:
        return await self.cache.update(user_id, new_vector, new_stats)

    async def batch_get_voice_dna(self, user_ids: Sequence[str]) -> Dict[str, VoiceDNA]:
        return await self.cache.batch_get(user_ids)

    async def find_similar_profiles(
        self, user_id: str, threshold: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        return await self.cache.find_similar_profiles(user_id, threshold)

    async def learn_from_samples(
        self, user_id: str, samples: Sequence[SampleInput]
    ) -> Optional[VoiceDNA]:
        """Fingerprint *samples* and fold the result into the user's record.

        Raises:
            InsufficientSamplesError: If fewer than three samples are given.
            SampleTooShortError: If any sample is too short to analyse.

        Returns:
            The updated record, or ``None`` if the store was unavailable.
        """
        async with self._timed("Learning from samples", user_id=user_id):
            traits = await self._run(self.aggregator.create_fingerprint, samples)
            return await self.cache.update(
                user_id,
                traits_to_vector(traits),
                feature_stats_from_traits(traits),
            )

    # ------------------------------------------------------------------
    # INTERNALS
    # ------------------------------------------------------------------

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        if self._closed:
            raise RuntimeError("VoiceProfileService is closed")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def _timed(self, message: str, **kwargs: Any) -> AsyncContextManager[Any]:
        if self._log is None:
            return contextlib.nullcontext()
        return self._log.timed(message, **kwargs)


__all__ = ["VoiceProfileService"]
