"""Content fingerprints for application files (directory or zip archive)."""

from __future__ import annotations

import hashlib
import os
import stat
import zipfile
from dataclasses import dataclass
from typing import Any, BinaryIO, Iterable, Mapping, Optional

from .buffer_pool import BufferPool

DEFAULT_MODE = 0o744


@dataclass(slots=True, frozen=True)
class ArtifactFingerprint:
    """SHA-1 digest, relative path, permission bits and size of one file."""

    sha1: str
    path: str
    mode: int = DEFAULT_MODE
    size: int = 0

    @property
    def mode_string(self) -> str:
        """Permission bits as an octal string, e.g. '744'."""
        return format(self.mode, "o")

    def to_resource(self) -> dict[str, Any]:
        """Serialize for the v3 resource_matches and package upload endpoints."""
        return {
            "checksum": {"value": self.sha1},
            "size_in_bytes": self.size,
            "path": self.path,
            "mode": self.mode_string,
        }


def fingerprint_from_resource(data: Mapping[str, Any]) -> ArtifactFingerprint:
    checksum = data.get("checksum") or {}
    mode = data.get("mode")
    return ArtifactFingerprint(
        sha1=str(checksum.get("value", "")),
        path=str(data.get("path", "")),
        mode=int(mode, 8) if isinstance(mode, str) and mode else DEFAULT_MODE,
        size=int(data.get("size_in_bytes") or 0),
    )


def fingerprint_all(source: str, pool: BufferPool) -> list[ArtifactFingerprint]:
    """Fingerprint every file of a directory tree or zip archive, sorted by path."""
    if os.path.isdir(source):
        return fingerprint_directory(source, pool)
    return fingerprint_zip(source, pool)


def fingerprint(source: str, pool: BufferPool) -> set[ArtifactFingerprint]:
    """Fingerprint source, keeping one representative per content hash."""
    return set(dedupe_by_hash(fingerprint_all(source, pool)).values())


def fingerprint_directory(root: str, pool: BufferPool) -> list[ArtifactFingerprint]:
    results: list[ArtifactFingerprint] = []
    for path in _walk_files(root):
        st = os.stat(path)
        with open(path, "rb") as f:
            digest = hash_stream(f, pool)
        results.append(
            ArtifactFingerprint(
                sha1=digest,
                path=relative_name(root, path),
                mode=_posix_mode(st.st_mode),
                size=st.st_size,
            )
        )
    return results


def fingerprint_zip(archive: str, pool: BufferPool) -> list[ArtifactFingerprint]:
    results: list[ArtifactFingerprint] = []
    with zipfile.ZipFile(archive) as zf:
        for info in sorted(zf.infolist(), key=lambda i: i.filename):
            if info.is_dir():
                continue
            with zf.open(info) as f:
                digest = hash_stream(f, pool)
            results.append(
                ArtifactFingerprint(
                    sha1=digest,
                    path=info.filename,
                    mode=zip_entry_mode(info),
                    size=info.file_size,
                )
            )
    return results


def dedupe_by_hash(
    fingerprints: Iterable[ArtifactFingerprint],
) -> dict[str, ArtifactFingerprint]:
    """Map sha1 -> first fingerprint seen with that hash."""
    unique: dict[str, ArtifactFingerprint] = {}
    for fp in fingerprints:
        unique.setdefault(fp.sha1, fp)
    return unique


def hash_stream(stream: BinaryIO, pool: BufferPool) -> str:
    """SHA-1 hex digest of stream, read through a pooled buffer."""
    digest = hashlib.sha1()
    with pool.checkout() as buffer:
        view = memoryview(buffer)
        while True:
            n = stream.readinto(buffer)
            if not n:
                break
            digest.update(view[:n])
    return digest.hexdigest()


def zip_entry_mode(info: zipfile.ZipInfo) -> int:
    """Unix permission bits of a zip entry, DEFAULT_MODE when unset."""
    mode = (info.external_attr >> 16) & 0o777
    return mode or DEFAULT_MODE


def relative_name(root: str, path: str) -> str:
    """Relative posix path of path under root; directories get a trailing slash."""
    rel = os.path.relpath(path, root).replace(os.sep, "/")
    if os.path.isdir(path) and not rel.endswith("/"):
        rel += "/"
    return rel


def _walk_files(root: str) -> list[str]:
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            files.append(os.path.join(dirpath, name))
    return files


def _posix_mode(st_mode: Optional[int]) -> int:
    if os.name != "posix" or st_mode is None:
        return DEFAULT_MODE
    return stat.S_IMODE(st_mode) & 0o777
