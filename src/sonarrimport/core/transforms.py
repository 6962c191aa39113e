"""Filename transforms and in-place renames.

Transforms are (search, replace) regex pairs applied in declared order, each
as a global, case-insensitive substitution (the ``s/search/replace/gI``
semantics of the settings format).
"""

import logging
import re
from pathlib import Path
from typing import Iterable

from sonarrimport.fs.operations import safe_rename
from sonarrimport.models.config import TransformRule

logger = logging.getLogger(__name__)


def apply_transforms(filename: str, rules: Iterable[TransformRule]) -> str:
    """Apply each rule to *filename* in order and return the result.

    Rules with an invalid pattern or replacement template are logged and
    skipped so one bad rule does not stop the others.
    """
    rules = list(rules)
    if not rules:
        logger.debug("No transforms configured")
        return filename

    logger.debug("Applying %d transform(s) to: %s", len(rules), filename)
    new_filename = filename
    for index, rule in enumerate(rules, start=1):
        try:
            new_filename = re.sub(
                rule.search, rule.replace, new_filename, flags=re.IGNORECASE
            )
        except re.error as exc:
            logger.error("Transform %d (%s) is invalid: %s", index, rule.search, exc)
            continue
        logger.debug("  Transform %d: %s -> %s", index, rule.search, rule.replace)

    if new_filename != filename:
        logger.info("Filename transformed: %s => %s", filename, new_filename)
    return new_filename


def rename_file(path: Path, new_name: str, *, dry_run: bool = False) -> Path:
    """Rename *path* within its directory to *new_name*.

    Returns:
        The new path, or *path* unchanged when the name does not change.

    Raises:
        FileExistsError: If another file already has *new_name*.
        ValueError: If *new_name* is empty or contains a path separator.
    """
    if new_name == path.name:
        return path
    if not new_name or "/" in new_name or new_name in {".", ".."}:
        raise ValueError(f"Invalid filename after transforms: {new_name!r}")

    logger.info("Renaming file: %s -> %s", path.name, new_name)
    return safe_rename(path, path.with_name(new_name), dry_run=dry_run)
