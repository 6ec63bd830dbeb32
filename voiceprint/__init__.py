"""
Voice profile core: stylometric fingerprints of a writer's voice.

- ``VoiceProfileService``: Caller-facing API and lifecycle owner.
- ``VoiceDNACache``: Memory + Supabase cache of persisted fingerprints.
- ``analysis``: Feature extraction, fingerprinting and similarity scoring.
"""

from voiceprint.cache import VoiceDNACache
from voiceprint.config import Settings, get_settings
from voiceprint.models import VoiceDNA, VoiceprintTraits, WritingSample
from voiceprint.service import VoiceProfileService

__version__ = "0.1.0"

__all__ = [
    "VoiceProfileService",
    "VoiceDNACache",
    "Settings",
    "get_settings",
    "VoiceDNA",
    "VoiceprintTraits",
    "WritingSample",
]
