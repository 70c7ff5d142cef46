"""
Output path resolution for artifacts (screenshots, videos, downloads).

Relative paths are resolved against the working directory *when they are
resolved*, not when the options are built, so a process that changes
directory after configuration still writes where it is running.

Layout produced:
  {output}/screenshots/*.png
  {output}/videos/*.webm
  {downloads}/*
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .errors import DirectoryError

logger = logging.getLogger(__name__)

SCREENSHOTS_DIRNAME = "screenshots"
VIDEOS_DIRNAME = "videos"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
DEFAULT_SCREENSHOT_EXTENSION = ".png"


@dataclass(frozen=True)
class OutputDirectories:
    """Absolute output directories of one session."""

    base: Path
    screenshots: Path
    videos: Path
    downloads: Path


def resolve_directory(base: str | os.PathLike[str], name: str | None = None) -> Path:
    """Return `base` (joined with `name` if given) as an absolute path."""
    path = Path(base)
    if not path.is_absolute():
        path = Path.cwd() / path
    if name:
        path = path / name
    return Path(os.path.abspath(path))


def ensure_exists(path: Path) -> Path:
    """Create `path` (and parents); an existing directory is fine."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create directory %s: %s", path, e)
        raise DirectoryError(
            f"failed to create directory: {e}", operation="ensure_exists", details={"path": str(path)}, cause=e
        ) from e
    return path


def timestamped_name(base: str, include_timestamp: bool = True, *, now: datetime | None = None) -> str:
    """
    Insert ``_{YYYY-MM-DD_HH-mm-ss}`` (local time) between stem and extension.
    With `include_timestamp=False` the name is returned unchanged.
    """
    if not include_timestamp:
        return base
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    stem, ext = os.path.splitext(base)
    return f"{stem}_{stamp}{ext}"


def with_default_extension(filename: str, extension: str = DEFAULT_SCREENSHOT_EXTENSION) -> str:
    if os.path.splitext(filename)[1]:
        return filename
    return f"{filename}{extension}"


class OutputPaths:
    """Configured output/downloads locations of a session, resolved on demand."""

    def __init__(self, output_path: str | os.PathLike[str], downloads_path: str | os.PathLike[str]) -> None:
        self.output_path = output_path
        self.downloads_path = downloads_path

    def directories(self) -> OutputDirectories:
        base = resolve_directory(self.output_path)
        return OutputDirectories(
            base=base,
            screenshots=base / SCREENSHOTS_DIRNAME,
            videos=base / VIDEOS_DIRNAME,
            downloads=resolve_directory(self.downloads_path),
        )

    def screenshots_dir(self) -> Path:
        path = ensure_exists(resolve_directory(self.output_path, SCREENSHOTS_DIRNAME))
        logger.debug("Screenshots directory ready: %s", path)
        return path

    def videos_dir(self) -> Path:
        path = ensure_exists(resolve_directory(self.output_path, VIDEOS_DIRNAME))
        logger.debug("Videos directory ready: %s", path)
        return path

    def downloads_dir(self) -> Path:
        path = ensure_exists(resolve_directory(self.downloads_path))
        logger.debug("Downloads directory ready: %s", path)
        return path

    def screenshot_path(self, filename: str, include_timestamp: bool = True) -> Path:
        """Target file for a screenshot; the screenshots directory is created."""
        name = with_default_extension(timestamped_name(filename, include_timestamp))
        return self.screenshots_dir() / name
