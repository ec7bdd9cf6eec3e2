"""Fingerprinting, resource matching and archive construction for bits upload."""

from __future__ import annotations

from .archive import build_archive
from .buffer_pool import BufferPool
from .fingerprint import (
    DEFAULT_MODE,
    ArtifactFingerprint,
    dedupe_by_hash,
    fingerprint,
    fingerprint_all,
    fingerprint_directory,
    fingerprint_from_resource,
    fingerprint_zip,
    hash_stream,
    zip_entry_mode,
)
from .matching import MATCH_CHUNK_SIZE, match_resources

__all__ = [
    "ArtifactFingerprint",
    "BufferPool",
    "DEFAULT_MODE",
    "MATCH_CHUNK_SIZE",
    "build_archive",
    "dedupe_by_hash",
    "fingerprint",
    "fingerprint_all",
    "fingerprint_directory",
    "fingerprint_from_resource",
    "fingerprint_zip",
    "hash_stream",
    "match_resources",
    "zip_entry_mode",
]
