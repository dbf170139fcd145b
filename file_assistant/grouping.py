"""
Grouping of directory entries for the File Assistant.

Pure grouping functions plus the read-only "categorize" operations that
render a grouping as text. Nothing in this module touches the filesystem
beyond reading it.
"""

import logging
import re
from collections import Counter
from collections.abc import MutableMapping
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

DIRECTORY_NOT_FOUND = "Directory does not exist."
NO_IMAGES_FOUND = "No image files found."
IMAGE_ANALYSIS_HEADER = "Image files for context analysis:"

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp", ".tiff"}

STOP_WORDS = {
    "the", "and", "for", "with", "that", "this", "from", "are",
    "was", "but", "not", "you", "all", "can", "has", "have",
}

NAME_CONTEXT_RE = re.compile(r"^[A-Za-z0-9]+")
TRAILING_DIGITS_RE = re.compile(r"\d+$")
WORD_RE = re.compile(r"\b[a-z]{3,}\b")

OTHER_KEY = "other"
UNCATEGORIZED_KEY = "uncategorized"
MATCHING_KEY = "matching"
NOT_MATCHING_KEY = "not matching"


class LabelMap(MutableMapping):
    """
    Mapping of file path -> free-text label.

    Keys compare case-insensitively; the first spelling of a key is kept
    for iteration.
    """

    def __init__(self, data=None):
        self._store: dict[str, tuple[str, str]] = {}
        if data is not None:
            self.update(data)

    @staticmethod
    def _key(path) -> str:
        return str(path).casefold()

    def __getitem__(self, path) -> str:
        return self._store[self._key(path)][1]

    def __setitem__(self, path, label: str) -> None:
        key = self._key(path)
        original = self._store[key][0] if key in self._store else str(path)
        self._store[key] = (original, label)

    def __delitem__(self, path) -> None:
        del self._store[self._key(path)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"LabelMap({dict(self.items())!r})"


# -----------------------------------------------------------------------------
# Entry listing
# -----------------------------------------------------------------------------

def list_files(directory: Path) -> list[Path]:
    """Immediate child files of a directory, sorted by path."""
    return sorted(p for p in directory.iterdir() if p.is_file())


def list_folders(directory: Path) -> list[Path]:
    """Immediate child directories of a directory, sorted by path."""
    return sorted(p for p in directory.iterdir() if p.is_dir())


def count_files(folder: Path) -> int | None:
    """Number of files directly inside a folder (one level deep), or None if unreadable."""
    try:
        return sum(1 for p in folder.iterdir() if p.is_file())
    except OSError as e:
        logger.warning("Cannot count files in %s: %s", folder, e)
        return None


def filter_images(paths: Iterable[Path]) -> list[Path]:
    """Keep only paths with an image extension (case-insensitive)."""
    return [p for p in paths if p.suffix.lower() in IMAGE_EXTENSIONS]


# -----------------------------------------------------------------------------
# Grouping
# -----------------------------------------------------------------------------

def _group(paths: Iterable[Path], key_fn) -> dict[str, list[Path]]:
    groups: dict[str, list[Path]] = {}
    for path in paths:
        groups.setdefault(key_fn(path), []).append(path)
    return groups


def extension_key(path: Path) -> str:
    return path.suffix.lower()


def name_context_key(path: Path) -> str:
    """
    Leading alphanumeric run of the stem, lowercased.

    A trailing sequence number is dropped ("Invoice1" -> "invoice") unless
    the run is all digits. Stems starting with anything else key as "other".
    """
    match = NAME_CONTEXT_RE.match(path.stem)
    if not match:
        return OTHER_KEY
    run = match.group(0).lower()
    return TRAILING_DIGITS_RE.sub("", run) or run


def group_by_extension(paths: Iterable[Path]) -> dict[str, list[Path]]:
    """
    Group paths by lowercased extension, dot included.

    Paths without an extension are keyed under "".
    """
    return _group(paths, extension_key)


def group_by_name_context(paths: Iterable[Path]) -> dict[str, list[Path]]:
    """Group paths by the leading alphanumeric run of the file stem."""
    return _group(paths, name_context_key)


def content_keyword(text: str) -> str:
    """
    The most frequent non-stop-word of 3+ letters in a text.

    Ties go to the word that appears first. Returns "uncategorized" when
    no word qualifies.
    """
    words = [w for w in WORD_RE.findall(text.lower()) if w not in STOP_WORDS]
    if not words:
        return UNCATEGORIZED_KEY
    # Counter keeps first-seen order and most_common sorts stably
    return Counter(words).most_common(1)[0][0]


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.info("Could not read %s, treating as empty: %s", path, e)
        return ""


def group_by_content_context(paths: Iterable[Path]) -> dict[str, list[Path]]:
    """Group .txt files by their dominant keyword."""
    text_files = [p for p in paths if p.suffix.lower() == ".txt"]
    return _group(text_files, lambda p: content_keyword(read_text(p)))


def split_by_pattern(folders: Iterable[Path], pattern: str) -> dict[str, list[Path]]:
    """Partition folders into exactly "matching" and "not matching"."""
    needle = pattern.casefold()
    groups: dict[str, list[Path]] = {MATCHING_KEY: [], NOT_MATCHING_KEY: []}
    for folder in folders:
        key = MATCHING_KEY if needle in folder.name.casefold() else NOT_MATCHING_KEY
        groups[key].append(folder)
    return groups


def format_groups(groups: dict[str, list[Path]]) -> str:
    """Render groups as "key:" lines followed by indented member names."""
    lines = []
    for key, members in groups.items():
        lines.append(f"{key}:")
        lines.extend(f"  {p.name}" for p in members)
    return "".join(f"{line}\n" for line in lines)


# -----------------------------------------------------------------------------
# Categorize operations
# -----------------------------------------------------------------------------

def categorize_by_extension(directory: Path | str) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND
    return format_groups(group_by_extension(list_files(directory)))


def categorize_by_name_context(directory: Path | str) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND
    return format_groups(group_by_name_context(list_files(directory)))


def categorize_by_content_context(directory: Path | str) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND
    return format_groups(group_by_content_context(list_files(directory)))


def categorize_images_by_context(directory: Path | str, multimodal: bool = False) -> str:
    """
    Categorize the images of a directory.

    Without a multimodal labeler the images are grouped by extension. With
    one, the raw image paths are listed for external labeling instead.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    images = filter_images(list_files(directory))
    if not images:
        return NO_IMAGES_FOUND

    if not multimodal:
        return format_groups(group_by_extension(images))

    lines = [IMAGE_ANALYSIS_HEADER] + [str(p) for p in images]
    return "".join(f"{line}\n" for line in lines)


def categorize_folders_by_pattern(directory: Path | str, pattern: str) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    groups = split_by_pattern(list_folders(directory), pattern)
    lines = [f"Folders matching '{pattern}':"]
    lines.extend(f"  {p.name}" for p in groups[MATCHING_KEY])
    lines.append(f"Folders not matching '{pattern}':")
    lines.extend(f"  {p.name}" for p in groups[NOT_MATCHING_KEY])
    return "".join(f"{line}\n" for line in lines)


def categorize_folders_by_size(directory: Path | str) -> str:
    """Report the raw file count of each folder; no bucket labels."""
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    lines = []
    for folder in list_folders(directory):
        count = count_files(folder)
        lines.append(f"{folder.name}: unreadable" if count is None else f"{folder.name}: {count} files")
    return "".join(f"{line}\n" for line in lines)


def categorize_all_by_type(directory: Path | str) -> str:
    """List the files and the folders of a directory in two sections."""
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    lines = ["Files:"]
    lines.extend(f"  {p.name}" for p in list_files(directory))
    lines.append("Folders:")
    lines.extend(f"  {p.name}" for p in list_folders(directory))
    return "".join(f"{line}\n" for line in lines)
