"""
File-write collaborator — puts GeneratedFiles on disk.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterable
from pathlib import Path

from kubegen.core.models.template import GeneratedFile

logger = logging.getLogger(__name__)


def write_files(destination: Path, files: Iterable[GeneratedFile], force: bool = True) -> list[str]:
    """Write files below ``destination``.

    Existing files are kept unless the file allows overwriting and
    ``force`` is set. OSErrors propagate to the caller.

    Returns:
        Relative paths actually written.
    """
    written: list[str] = []
    for file in files:
        target = destination / file.path
        if target.exists() and not (file.overwrite and force):
            logger.info("Keeping existing file: %s", file.path)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(file.content, encoding="utf-8")
        written.append(file.path)
        logger.debug("Wrote %s (%s)", file.path, file.reason or "generated")

    logger.info("Wrote %d file(s) to %s", len(written), destination)
    return written


def make_executable(path: Path) -> None:
    """chmod 755."""
    os.chmod(path, stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH)


def is_executable(path: Path) -> bool:
    return path.is_file() and bool(path.stat().st_mode & stat.S_IXUSR)
