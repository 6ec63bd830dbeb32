"""Two-tier (memory + persistent store) cache of voice fingerprints."""

from voiceprint.cache.voice_dna_cache import VoiceDNACache

__all__ = ["VoiceDNACache"]
