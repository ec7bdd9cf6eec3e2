"""Build the zip uploaded as application bits."""

from __future__ import annotations

import os
import shutil
import tempfile
import zipfile
from typing import Callable, Optional

from .fingerprint import relative_name

IncludeFilter = Callable[[str], bool]


def build_archive(
    source: str,
    include: Optional[IncludeFilter] = None,
    *,
    destination: Optional[str] = None,
) -> str:
    """
    Write a zip of source (a directory or an existing zip) and return its path.

    Each entry keeps its relative path, modification time and permission bits.
    include is called with the relative path (directories end with '/') and
    entries for which it returns False are skipped. When destination is None a
    temporary file is created; the caller removes it.
    """
    accept = include or (lambda _path: True)
    if destination is None:
        fd, destination = tempfile.mkstemp(prefix="cfops-bits-", suffix=".zip")
        os.close(fd)

    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as out:
        if os.path.isdir(source):
            _add_directory(out, source, accept)
        else:
            _copy_zip(out, source, accept)
    return destination


def _add_directory(out: zipfile.ZipFile, root: str, accept: IncludeFilter) -> None:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        entries = [os.path.join(dirpath, d) for d in dirnames]
        entries += [os.path.join(dirpath, f) for f in sorted(filenames)]
        for path in entries:
            arcname = relative_name(root, path)
            if not accept(arcname):
                continue
            info = zipfile.ZipInfo.from_file(path, arcname, strict_timestamps=False)
            if info.is_dir():
                out.writestr(info, b"")
                continue
            info.compress_type = zipfile.ZIP_DEFLATED
            with open(path, "rb") as src, out.open(info, "w") as dst:
                shutil.copyfileobj(src, dst)


def _copy_zip(out: zipfile.ZipFile, archive: str, accept: IncludeFilter) -> None:
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            if not accept(info.filename):
                continue
            copied = zipfile.ZipInfo(info.filename, date_time=info.date_time)
            copied.external_attr = info.external_attr
            if info.is_dir():
                out.writestr(copied, b"")
                continue
            copied.compress_type = zipfile.ZIP_DEFLATED
            with zf.open(info) as src, out.open(copied, "w") as dst:
                shutil.copyfileobj(src, dst)
