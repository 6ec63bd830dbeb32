"""
Async persistent store for voice fingerprints.

ALL ``voice_dna`` table access goes through the SupabaseDB class defined
here.  The two-tier cache talks to it through four coroutines:

    get_voice_dna(user_id)             -> VoiceDNA | None
    upsert_voice_dna(record)           -> VoiceDNA
    batch_get_voice_dna(user_ids)      -> list[VoiceDNA]
    list_voice_vectors_except(user_id) -> list[(user_id, dna_vector)]

Any object exposing the same coroutines can stand in for the store.

Usage::

    from voiceprint.database import SupabaseDB

    db = await SupabaseDB.create()
    record = await db.get_voice_dna("user-123")
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from supabase import AsyncClient, create_async_client

from voiceprint.exceptions import DatabaseError, ValidationError
from voiceprint.models import VoiceDNA
from voiceprint.utils import utc_now

logger = logging.getLogger(__name__)

VOICE_DNA_TABLE = "voice_dna"


# =============================================================================
# VALIDATION HELPERS
# =============================================================================


def validate_not_empty(value: Any, name: str) -> None:
    """Validate that *value* is not ``None`` or an empty string.

    Args:
        value: The value to check.
        name: Human-readable field name used in error messages.

    Raises:
        ValidationError: If *value* is ``None`` or a blank string.
    """
    if value is None:
        raise ValidationError(f"{name} cannot be None")
    if isinstance(value, str) and not value.strip():
        raise ValidationError(f"{name} cannot be empty string")


def validate_positive(value: Union[int, float], name: str) -> None:
    """Validate that *value* is strictly positive (> 0).

    Raises:
        ValidationError: If *value* is ``None`` or not positive.
    """
    if value is None:
        raise ValidationError(f"{name} cannot be None")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class SupabaseConfig:
    """Supabase configuration loaded from environment variables.

    Attributes:
        url: The Supabase project URL (``SUPABASE_URL``).
        key: The service-role key for full server-side access
            (``SUPABASE_SERVICE_KEY``).
    """

    url: str
    key: str

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        """Create a config instance from environment variables.

        Raises:
            ValueError: If either variable is missing or empty.
        """
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_KEY")

        if not url or not key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY must be set"
            )

        return cls(url=url, key=key)


# =============================================================================
# SUPABASE DATABASE CLIENT
# =============================================================================


class SupabaseDB:
    """Async client for the ``voice_dna`` table.

    **Important:** Use the :meth:`create` factory method instead of
    ``__init__`` directly -- the underlying async client requires an
    ``await`` during initialisation.
    """

    def __init__(self, client: AsyncClient) -> None:
        """Private constructor.  Use :meth:`create` factory method."""
        self.client = client

    @classmethod
    async def create(
        cls, config: Optional[SupabaseConfig] = None
    ) -> "SupabaseDB":
        """Factory method to create an async :class:`SupabaseDB` instance.

        Args:
            config: Optional configuration.  When ``None``,
                :meth:`SupabaseConfig.from_env` is used.

        Returns:
            A fully initialised :class:`SupabaseDB` instance.
        """
        config = config or SupabaseConfig.from_env()
        client = await create_async_client(config.url, config.key)
        return cls(client)

    # -----------------------------------------------------------------
    # VOICE DNA
    # -----------------------------------------------------------------

    async def get_voice_dna(self, user_id: str) -> Optional[VoiceDNA]:
        """Get a user's voice fingerprint.

        Args:
            user_id: Owner of the record.

        Returns:
            The record, or ``None`` if the user has none yet.
        """
        validate_not_empty(user_id, "user_id")

        result = await (
            self.client.table(VOICE_DNA_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .execute()
        )
        return VoiceDNA.from_row(result.data[0]) if result.data else None

    async def upsert_voice_dna(self, record: VoiceDNA) -> VoiceDNA:
        """Insert or replace a user's voice fingerprint.

        Uses ``upsert`` keyed on ``user_id`` so the last write wins.
        ``updated_at`` is stamped before writing.

        Args:
            record: The record to persist.

        Returns:
            The stored record as returned by the database.

        Raises:
            ValidationError: On missing / invalid fields.
            DatabaseError: When the upsert returns no data.
        """
        if record is None:
            raise ValidationError("record cannot be None")
        validate_not_empty(record.user_id, "user_id")
        if not record.dna_vector:
            raise ValidationError("record must have a non-empty dna_vector")
        validate_positive(record.samples_analyzed, "samples_analyzed")

        record.updated_at = utc_now()
        result = await (
            self.client.table(VOICE_DNA_TABLE)
            .upsert(record.to_row(), on_conflict="user_id")
            .execute()
        )
        if not result.data:
            raise DatabaseError("Upsert succeeded but returned no data")
        return VoiceDNA.from_row(result.data[0])

    async def batch_get_voice_dna(self, user_ids: Sequence[str]) -> List[VoiceDNA]:
        """Get fingerprints for many users in a single ``IN`` query.

        Users without a record are simply absent from the result.
        """
        if not user_ids:
            return []

        result = await (
            self.client.table(VOICE_DNA_TABLE)
            .select("*")
            .in_("user_id", list(user_ids))
            .execute()
        )
        return [VoiceDNA.from_row(row) for row in result.data or []]

    async def list_voice_vectors_except(
        self, user_id: str
    ) -> List[Tuple[str, List[float]]]:
        """List ``(user_id, dna_vector)`` for every user except *user_id*."""
        validate_not_empty(user_id, "user_id")

        result = await (
            self.client.table(VOICE_DNA_TABLE)
            .select("user_id, dna_vector")
            .neq("user_id", user_id)
            .execute()
        )
        return [
            (row["user_id"], [float(v) for v in row.get("dna_vector") or []])
            for row in result.data or []
        ]


__all__ = [
    "VOICE_DNA_TABLE",
    "validate_not_empty",
    "validate_positive",
    "SupabaseConfig",
    "SupabaseDB",
]
