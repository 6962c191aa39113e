"""Filesystem rename/move operations for sonarrimport.

Provides a cross-device safe rename helper used for transform renames and
folder trimming, plus cleanup of directories left empty by a move.
"""

import errno
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def safe_rename(
    src: Path, dst: Path, *, dry_run: bool = False, overwrite: bool = False
) -> Path:
    """Move *src* to *dst* and return the resulting path.

    Handles cross-device moves (EXDEV) by copying then unlinking.

    Args:
        src: Source file path.
        dst: Destination file path.
        dry_run: If True, log the intended move and return *dst* untouched.
        overwrite: If True, replace destination if it exists.

    Raises:
        FileExistsError: If dst exists and *overwrite* is False.
        FileNotFoundError: If src is missing.
        OSError: For non-recoverable FS errors.

    Example:
        >>> from pathlib import Path
        >>> src = Path('a.mkv')
        >>> src.write_text('x')
        1
        >>> safe_rename(src, Path('b.mkv'))
        PosixPath('b.mkv')
    """
    if dry_run:
        logger.info("[dry run] Would move %s -> %s", src, dst)
        return dst
    if not src.exists():
        raise FileNotFoundError(f"Source {src} does not exist.")
    if dst.exists() and not overwrite:
        # Case-only renames on case-insensitive filesystems point at src itself.
        if not _same_file(src, dst):
            raise FileExistsError(f"Destination {dst} exists and overwrite is False.")
    try:
        if overwrite:
            src.replace(dst)
        else:
            src.rename(dst)
    except OSError as e:
        if e.errno == errno.EXDEV:
            shutil.copy2(src, dst)
            src.unlink()
        else:
            raise
    return dst


def _same_file(path1: Path, path2: Path) -> bool:
    try:
        return path1.samefile(path2)
    except OSError:
        return False


def remove_empty_parents(path: Path, stop_at: Path) -> list[Path]:
    """Remove empty directories from *path* upwards, never removing *stop_at*.

    Returns:
        The directories that were removed, deepest first.
    """
    removed: list[Path] = []
    stop_at = stop_at.resolve()
    current = path.resolve()
    while current != stop_at and stop_at in current.parents:
        try:
            current.rmdir()
        except OSError:
            # Not empty (or not removable): stop climbing.
            break
        removed.append(current)
        current = current.parent
    return removed
