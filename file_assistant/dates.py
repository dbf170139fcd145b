"""
Date-taken resolution for image files.

Walks a fallback chain: EXIF capture time, then last-write time, then
creation time. Never raises; absence is reported as None.
"""

import logging
import os
from datetime import datetime
from pathlib import Path

from PIL import ExifTags, Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

UNKNOWN_DATE = "Unknown_Date"

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

# Timestamps at or before 1970 are sentinel values on some filesystems
MIN_VALID_YEAR = 1970

TAG_DATETIME = 306            # IFD0
TAG_DATETIME_ORIGINAL = 36867  # Exif IFD


def _parse_exif_date(value) -> datetime | None:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    if not value:
        return None
    value = str(value).strip("\x00 ")
    if len(value) < 19:
        return None
    try:
        return datetime.strptime(value[:19], EXIF_DATE_FORMAT)
    except ValueError:
        return None


def get_exif_date(filepath: Path) -> datetime | None:
    """Extract 'DateTimeOriginal' (or 'DateTime') from an image's EXIF data."""
    try:
        with Image.open(filepath) as img:
            exif = img.getexif()
            if not exif:
                return None

            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            taken = _parse_exif_date(exif_ifd.get(TAG_DATETIME_ORIGINAL))
            if taken is not None:
                return taken

            # Fallback to DateTime if Original not found
            return _parse_exif_date(exif.get(TAG_DATETIME))
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        logger.debug("No EXIF date for %s: %s", filepath, e)
    return None


def _valid_timestamp(timestamp: float) -> datetime | None:
    try:
        dt = datetime.fromtimestamp(timestamp)
    except (OverflowError, OSError, ValueError):
        return None
    return dt if dt.year > MIN_VALID_YEAR else None


def _creation_timestamp(stat: os.stat_result) -> float:
    # st_birthtime exists on macOS/BSD and recent Windows builds
    return getattr(stat, "st_birthtime", stat.st_ctime)


def resolve_date_taken(path: Path | str) -> datetime | None:
    """
    Return the best available "date taken" for an image file.

    Args:
        path: Image file path.

    Returns:
        The EXIF capture time, else the last-write time, else the creation
        time (file-system times only when their year is after 1970), or None
        when the file is missing or nothing usable is found.
    """
    try:
        path = Path(path)
        if not path.is_file():
            return None

        taken = get_exif_date(path)
        if taken is not None:
            return taken

        stat = path.stat()
        modified = _valid_timestamp(stat.st_mtime)
        if modified is not None:
            return modified

        return _valid_timestamp(_creation_timestamp(stat))
    except Exception as e:
        logger.debug("Date resolution failed for %s: %s", path, e)
        return None


def date_folder_name(taken: datetime | None) -> str:
    """Folder name for a resolved date: YYYY-MM-DD or Unknown_Date."""
    if taken is None:
        return UNKNOWN_DATE
    return taken.strftime("%Y-%m-%d")
