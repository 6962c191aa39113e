"""Downloads folder scanner.

Finds the video files that should be handed to Sonarr. Classification is by
extension only; Sonarr itself decides whether a file is a usable episode.
"""

import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {
    ".mkv",
    ".avi",
    ".wmv",
    ".mov",
    ".amv",
    ".mp4",
    ".m4v",
    ".f4v",
    ".mpg",
    ".mp2",
    ".mpeg",
    ".mpe",
    ".mpv",
}


class DownloadsFolderNotFoundError(FileNotFoundError):
    """Raised when the configured downloads folder does not exist."""

    def __init__(self, folder: Path) -> None:
        super().__init__(f"Folder {folder} was not found. Check configuration.")
        self.folder = folder


def is_video_file(path: Path) -> bool:
    """Check if *path* has a video extension (case-insensitive)."""
    return path.suffix.lower() in VIDEO_EXTENSIONS


def scan_downloads(folder: Path) -> List[Path]:
    """Recursively list video files under *folder*, sorted by path.

    Raises:
        DownloadsFolderNotFoundError: If *folder* is missing or not a directory.
    """
    if not folder.is_dir():
        raise DownloadsFolderNotFoundError(folder)

    videos = sorted(
        path for path in folder.rglob("*") if path.is_file() and is_video_file(path)
    )
    logger.debug("Found %d video file(s) under %s", len(videos), folder)
    return videos
