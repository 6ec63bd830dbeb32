"""Shared fixtures for the voiceprint test suite."""

import asyncio
import copy
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from voiceprint.logging.voice_logger import reset_logger
from voiceprint.models import VoiceDNA
from voiceprint.utils import utc_now


# ---------------------------------------------------------------------------
# Writing samples
# ---------------------------------------------------------------------------
# Long words, long sentences, no contractions -> formality close to 1.0
FORMAL_SAMPLES = [
    "Organizational transformation requires comprehensive understanding of "
    "institutional dynamics, stakeholder expectations, and operational constraints. "
    "Leadership committees must therefore establish measurable objectives, allocate "
    "appropriate resources, and communicate strategic priorities consistently "
    "throughout the organization. Furthermore, successful implementation depends "
    "upon continuous evaluation of performance indicators, systematic documentation "
    "of procedural improvements, and transparent accountability mechanisms. "
    "Consequently, management professionals should approach institutional development "
    "methodically, anticipating complications and recognizing interdependencies "
    "between departments.",
    "Contemporary research demonstrates that educational institutions benefit "
    "considerably from collaborative governance structures, interdisciplinary "
    "curricula, and rigorous assessment frameworks. Administrators should therefore "
    "prioritize professional development, encourage methodological innovation, and "
    "cultivate partnerships with community organizations. Moreover, sustainable "
    "improvement necessitates reliable information systems, comprehensive evaluation "
    "procedures, and deliberate allocation of institutional resources. Consequently, "
    "responsible decision makers must balance competing obligations thoughtfully, "
    "documenting their reasoning and acknowledging uncertainties transparently.",
    "Effective regulatory compliance depends upon accurate interpretation of "
    "legislative requirements, consistent application of internal policies, and "
    "thorough verification of documentation. Organizations should therefore maintain "
    "independent oversight committees, conduct periodic examinations, and implement "
    "corrective measures promptly. Additionally, experienced practitioners recommend "
    "establishing communication protocols between departments, standardizing "
    "reporting procedures, and evaluating contractual obligations carefully. "
    "Consequently, disciplined institutions generally demonstrate superior "
    "resilience, financial stability, and longstanding credibility among stakeholders.",
]

# Short sentences, contractions, casual markers, joyful tone
INFORMAL_SAMPLES = [
    "Yeah, I'm so happy right now! We're gonna grab tacos later. My dog's kinda "
    "goofy and I love him. Don't ask why he barks at the mailman. It's just his "
    "thing, I guess. I'm excited for the weekend! We'll hit the beach, eat some "
    "snacks, and nap. Nope, I won't check my email. You gotta chill a bit, right? "
    "Yep, that's my plan and I'm thrilled about it!",
    "Man, I'm so stoked! We're gonna paint the kitchen today. It's kinda messy but "
    "who cares? My sis can't stop laughing at me. Yeah, I dropped the brush twice. "
    "Oops! I'm happy though, it looks great. We'll order pizza after, I think. "
    "Don't tell my mom, she'd freak out. Nope, not gonna clean up yet. I'm excited "
    "to show you pics later!",
    "Yep, I'm back from the gym and I'm thrilled! My legs are kinda dead, lol. "
    "We're gonna cook pasta tonight. Don't judge, it's carb day! I can't wait. "
    "Yeah, my buddy's coming over too. He's so funny, you'd love him. We'll watch "
    "a dumb movie and chill. Nope, no work talk allowed. I'm happy, tired, and "
    "ready to eat a ton of food!",
]


@pytest.fixture
def formal_samples() -> List[str]:
    return list(FORMAL_SAMPLES)


@pytest.fixture
def informal_samples() -> List[str]:
    return list(INFORMAL_SAMPLES)


# ---------------------------------------------------------------------------
# Ensure we don't hit real services or pick up local overrides
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _block_env_keys(monkeypatch):
    """Clear Supabase keys and VOICEPRINT_* overrides for every test."""
    keys = [
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "VOICEPRINT_CACHE_TTL_SECONDS",
        "VOICEPRINT_CACHE_MAX_ENTRIES",
        "VOICEPRINT_STORE_TIMEOUT_SECONDS",
        "VOICEPRINT_EXTRACTION_WORKERS",
        "VOICEPRINT_LOG_LEVEL",
        "VOICEPRINT_LOG_DIR",
    ]
    for key in keys:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_voice_logger():
    """Forget the global structured logger between tests."""
    reset_logger()
    yield
    reset_logger()


# ---------------------------------------------------------------------------
# Common datetime fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def sample_utc_now():
    """A fixed UTC datetime for deterministic tests."""
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Mock Supabase client
# ---------------------------------------------------------------------------
@pytest.fixture
def mock_supabase_client():
    """A mock Supabase async client.

    ``client.table()`` returns a chainable table mock; set
    ``table.execute`` to an ``AsyncMock`` to control the returned rows.
    """
    client = MagicMock()
    # table().select().eq().execute() chain
    table_mock = MagicMock()
    table_mock.select.return_value = table_mock
    table_mock.upsert.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.neq.return_value = table_mock
    table_mock.in_.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=MagicMock(data=[], count=0))
    client.table.return_value = table_mock
    return client


# ---------------------------------------------------------------------------
# In-memory store and clock for the cache
# ---------------------------------------------------------------------------
class FakeVoiceDNAStore:
    """In-memory stand-in for ``SupabaseDB``.

    ``calls`` counts invocations per operation and ``peak_in_flight`` the
    most calls running at once.  Set ``fail_with`` to make every call raise,
    ``fail_next_upsert`` to fail one upsert, or ``delay`` to make every call
    sleep first.
    """

    def __init__(self) -> None:
        self.records: Dict[str, VoiceDNA] = {}
        self.calls: Counter = Counter()
        self.fail_with: Optional[Exception] = None
        self.delay: float = 0.0
        self.fail_next_upsert: Optional[Exception] = None
        self.in_flight = 0
        self.peak_in_flight = 0

    async def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
            if operation == "upsert_voice_dna" and self.fail_next_upsert is not None:
                exc, self.fail_next_upsert = self.fail_next_upsert, None
                raise exc
        finally:
            self.in_flight -= 1

    async def get_voice_dna(self, user_id: str) -> Optional[VoiceDNA]:
        await self._enter("get_voice_dna")
        record = self.records.get(user_id)
        return copy.deepcopy(record) if record is not None else None

    async def upsert_voice_dna(self, record: VoiceDNA) -> VoiceDNA:
        await self._enter("upsert_voice_dna")
        stored = copy.deepcopy(record)
        stored.id = stored.id or f"dna-{record.user_id}"
        stored.created_at = stored.created_at or utc_now()
        stored.updated_at = utc_now()
        self.records[record.user_id] = stored
        return copy.deepcopy(stored)

    async def batch_get_voice_dna(self, user_ids) -> List[VoiceDNA]:
        await self._enter("batch_get_voice_dna")
        return [copy.deepcopy(self.records[u]) for u in user_ids if u in self.records]

    async def list_voice_vectors_except(self, user_id: str) -> List[Tuple[str, List[float]]]:
        await self._enter("list_voice_vectors_except")
        return [
            (other, list(record.dna_vector))
            for other, record in self.records.items()
            if other != user_id
        ]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> FakeVoiceDNAStore:
    return FakeVoiceDNAStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
