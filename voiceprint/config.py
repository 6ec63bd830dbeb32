"""
Centralized configuration loader for the voice profile core.

Loads settings from YAML files and environment variables, providing
sensible defaults when configuration files are absent.

Provides:
    - ExtractionConfig: Sample-size limits for feature extraction and fingerprints
    - SimilarityConfig: Scoring weights, affected-dimension and trend thresholds
    - CacheConfig: L1 capacity, TTL, sweep interval, EMA rate, store deadline
    - Settings: Global application settings loaded from YAML + env vars
    - get_settings(): Singleton accessor for Settings
    - validate_env(): Startup validation of required environment variables
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from voiceprint.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Load .env file (no-op if file does not exist)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Project root directory (parent of voiceprint/)
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


# ===========================================================================
# EXTRACTION CONFIGURATION
# ===========================================================================


@dataclass
class ExtractionConfig:
    """
    Limits that decide whether text is usable for stylometric analysis.

    ``min_samples`` is the hard floor for building a fingerprint;
    confidence keeps growing with sample count up to ``optimal_samples``.
    """

    min_sample_words: int = 50
    min_samples: int = 3
    optimal_samples: int = 5

    def __post_init__(self) -> None:
        if self.min_sample_words <= 0:
            raise ConfigurationError(
                f"min_sample_words must be positive, got {self.min_sample_words}"
            )
        if self.min_samples <= 0:
            raise ConfigurationError(
                f"min_samples must be positive, got {self.min_samples}"
            )
        if self.optimal_samples < self.min_samples:
            raise ConfigurationError(
                "optimal_samples must be >= min_samples "
                f"({self.optimal_samples} < {self.min_samples})"
            )


# ===========================================================================
# SIMILARITY CONFIGURATION
# ===========================================================================

# Dimensions a composite comparison can weight
VOICE_DIMENSIONS = (
    "vocabulary",
    "sentence_structure",
    "tone",
    "formality",
    "punctuation",
    "unique_phrases",
)


@dataclass
class SimilarityConfig:
    """
    Single source of truth for voice comparison weights and thresholds.

    Usage::

        config = SimilarityConfig()
        weight = config.weights["vocabulary"]
    """

    # -----------------------------------------------------------------
    # COMPOSITE WEIGHTS (sum to 1.0)
    # -----------------------------------------------------------------
    weights: Dict[str, float] = field(default_factory=lambda: {
        "vocabulary": 0.25,
        "sentence_structure": 0.20,
        "tone": 0.20,
        "formality": 0.15,
        "punctuation": 0.10,
        "unique_phrases": 0.10,
    })

    # -----------------------------------------------------------------
    # AFFECTED-DIMENSION THRESHOLDS (absolute deltas)
    # -----------------------------------------------------------------
    vocabulary_delta: float = 0.1
    sentence_length_delta: float = 5.0  # words
    formality_delta: float = 0.2

    # Sentence-length difference that maps to zero similarity
    sentence_length_scale: float = 50.0

    # -----------------------------------------------------------------
    # EVOLUTION TREND (vocabulary-richness delta)
    # -----------------------------------------------------------------
    stable_trend_max: float = 0.05
    evolving_trend_max: float = 0.15

    # Minimum score (0-100) for an edit to count as voice-safe
    voice_safe_threshold: int = 70

    def __post_init__(self) -> None:
        unknown = sorted(set(self.weights) - set(VOICE_DIMENSIONS))
        if unknown:
            raise ConfigurationError(
                f"unknown similarity weight(s): {', '.join(unknown)}; "
                f"expected some of {', '.join(VOICE_DIMENSIONS)}"
            )
        total = sum(self.weights.values())
        if total <= 0:
            raise ConfigurationError("similarity weights must sum to a positive value")
        if self.stable_trend_max > self.evolving_trend_max:
            raise ConfigurationError(
                "stable_trend_max must not exceed evolving_trend_max"
            )


# ===========================================================================
# CACHE CONFIGURATION
# ===========================================================================


@dataclass
class CacheConfig:
    """
    Two-tier cache tuning.

    ``ttl_seconds`` bounds how long an L1 entry is served without going
    back to the persistent store.  ``store_timeout_seconds`` is the
    deadline applied to every store call.
    """

    max_entries: int = 100
    ttl_seconds: float = 300.0
    cleanup_interval_seconds: float = 60.0
    ema_alpha: float = 0.1
    confidence_step: float = 0.05
    initial_confidence: float = 0.5
    similar_profile_threshold: float = 0.85
    store_timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.max_entries <= 0:
            raise ConfigurationError(
                f"max_entries must be positive, got {self.max_entries}"
            )
        if self.ttl_seconds <= 0:
            raise ConfigurationError(
                f"ttl_seconds must be positive, got {self.ttl_seconds}"
            )
        if not 0.0 < self.ema_alpha <= 1.0:
            raise ConfigurationError(
                f"ema_alpha must be in (0, 1], got {self.ema_alpha}"
            )
        if self.store_timeout_seconds <= 0:
            raise ConfigurationError(
                f"store_timeout_seconds must be positive, got {self.store_timeout_seconds}"
            )


# ===========================================================================
# GLOBAL SETTINGS
# ===========================================================================


# env var -> (section, attribute, cast)
_ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "VOICEPRINT_CACHE_TTL_SECONDS": ("cache", "ttl_seconds", float),
    "VOICEPRINT_CACHE_MAX_ENTRIES": ("cache", "max_entries", int),
    "VOICEPRINT_STORE_TIMEOUT_SECONDS": ("cache", "store_timeout_seconds", float),
    "VOICEPRINT_EXTRACTION_WORKERS": ("", "extraction_workers", int),
    "VOICEPRINT_LOG_LEVEL": ("", "log_level", str),
    "VOICEPRINT_LOG_DIR": ("", "log_dir", str),
}


def _section_kwargs(cls: type, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the keys *cls* declares, warning about the rest."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown %s keys: %s", cls.__name__, sorted(unknown))
    return {k: v for k, v in data.items() if k in known}


@dataclass
class Settings:
    """
    Global application settings.

    Loaded from ``config/settings.yaml`` when available, falling back to
    sensible defaults. Environment variables override YAML values for
    deployment-specific tuning.
    """

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    # Bounded worker pool for CPU-bound extraction
    extraction_workers: int = 4

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "Settings":
        """
        Load settings from a YAML file.

        If the file does not exist, returns an instance with all defaults.
        Environment variables override YAML values for specific keys.

        Args:
            path: Path to the YAML file. Defaults to
                ``<PROJECT_ROOT>/config/settings.yaml``.

        Returns:
            Populated Settings instance.

        Raises:
            ConfigurationError: If the YAML file exists but cannot be parsed,
                or a value (from YAML or env) is invalid.
        """
        path = path or PROJECT_ROOT / "config" / "settings.yaml"

        data: Dict[str, Any] = {}
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(
                    f"Failed to parse settings YAML at {path}: {exc}"
                ) from exc

        sections: Dict[str, Dict[str, Any]] = {
            "extraction": dict(data.get("extraction") or {}),
            "similarity": dict(data.get("similarity") or {}),
            "cache": dict(data.get("cache") or {}),
            "": {
                key: data[key]
                for key in ("extraction_workers", "log_level", "log_dir")
                if key in data
            },
        }

        # -----------------------------------------------------------------
        # Environment variable overrides
        # -----------------------------------------------------------------
        for env_key, (section, attr_name, cast_fn) in _ENV_OVERRIDES.items():
            env_val = os.environ.get(env_key)
            if env_val is None:
                continue
            try:
                sections[section][attr_name] = cast_fn(env_val)
            except (ValueError, TypeError) as exc:
                raise ConfigurationError(
                    f"Invalid value for env var {env_key}='{env_val}': {exc}"
                ) from exc

        try:
            settings = cls(
                extraction=ExtractionConfig(
                    **_section_kwargs(ExtractionConfig, sections["extraction"])
                ),
                similarity=SimilarityConfig(
                    **_section_kwargs(SimilarityConfig, sections["similarity"])
                ),
                cache=CacheConfig(**_section_kwargs(CacheConfig, sections["cache"])),
                **sections[""],
            )
        except TypeError as exc:
            raise ConfigurationError(f"Invalid settings at {path}: {exc}") from exc

        if settings.extraction_workers <= 0:
            raise ConfigurationError(
                f"extraction_workers must be positive, got {settings.extraction_workers}"
            )
        return settings


# ===========================================================================
# SINGLETON SETTINGS ACCESSOR
# ===========================================================================

_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global Settings singleton.

    On first call, loads from ``config/settings.yaml`` (or defaults).
    Subsequent calls return the cached instance.

    Returns:
        The global Settings instance.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings.from_yaml()
    return _settings_instance


def reset_settings() -> None:
    """
    Reset the cached Settings singleton.

    Useful for testing or when configuration files have been updated
    at runtime.
    """
    global _settings_instance
    _settings_instance = None


# ===========================================================================
# ENVIRONMENT VARIABLE VALIDATION
# ===========================================================================

# Required for the persistent store
REQUIRED_ENV_VARS: List[str] = [
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
]

# Optional tuning knobs
OPTIONAL_ENV_VARS: List[str] = list(_ENV_OVERRIDES)


def validate_env(strict: bool = True) -> Dict[str, bool]:
    """
    Validate that required environment variables are set.

    Args:
        strict: If ``True``, raise ``ConfigurationError`` when any required
            variable is missing. If ``False``, return the status dict
            without raising.

    Returns:
        Dict mapping variable name to presence status (``True`` if set).

    Raises:
        ConfigurationError: If ``strict=True`` and required vars are missing.
    """
    status: Dict[str, bool] = {}
    missing: List[str] = []

    for var in REQUIRED_ENV_VARS:
        present = bool(os.environ.get(var))
        status[var] = present
        if not present:
            missing.append(var)

    for var in OPTIONAL_ENV_VARS:
        status[var] = bool(os.environ.get(var))

    if strict and missing:
        raise ConfigurationError(
            f"Missing required environment variables: {missing}. "
            f"Copy .env.example to .env and fill in the values."
        )

    return status
