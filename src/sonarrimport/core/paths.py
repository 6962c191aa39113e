"""Local to remote path translation and folder trimming."""

import logging
from pathlib import Path

from sonarrimport.fs.operations import remove_empty_parents, safe_rename

logger = logging.getLogger(__name__)


def _remote_separator(mapping_path: str) -> str:
    # Windows-style prefix such as "D:\\Downloads\\".
    if "\\" in mapping_path and "/" not in mapping_path:
        return "\\"
    return "/"


def translate_path(base_folder: Path, full_path: Path, mapping_path: str) -> str:
    """Translate a local file path into the path Sonarr sees.

    The local *base_folder* prefix is removed from *full_path* and the
    remainder is appended to the remote *mapping_path* prefix.

    Example:
        >>> translate_path(Path("/mnt/dl"), Path("/mnt/dl/Show/ep.mkv"), "/downloads/")
        '/downloads/Show/ep.mkv'
    """
    try:
        relative = full_path.relative_to(base_folder)
        parts = relative.parts
    except ValueError:
        # Not under the base folder: fall back to the bare filename.
        parts = (full_path.name,)

    sep = _remote_separator(mapping_path)
    prefix = mapping_path.rstrip("/\\")
    return prefix + sep + sep.join(parts)


def trim_folder(path: Path, base_folder: Path, *, dry_run: bool = False) -> Path:
    """Move *path* up to *base_folder* and drop the sub-folders left empty.

    Files already at the root of *base_folder* are returned unchanged.

    Raises:
        FileExistsError: If a file with the same name exists at the root.
    """
    if path.parent == base_folder:
        return path
    target = base_folder / path.name
    logger.info("Trimming folders: %s -> %s", path, target)
    moved = safe_rename(path, target, dry_run=dry_run)
    if not dry_run:
        for removed in remove_empty_parents(path.parent, base_folder):
            logger.debug("Removed empty folder %s", removed)
    return moved
