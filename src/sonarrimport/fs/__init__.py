"""Filesystem operations for sonarrimport."""

from sonarrimport.fs.operations import remove_empty_parents, safe_rename

__all__ = ["remove_empty_parents", "safe_rename"]
