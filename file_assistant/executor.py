"""
Move execution for the File Assistant.

Turns groupings and label maps into filesystem moves. Moves never overwrite:
a file or folder whose name already exists at the destination is skipped,
so re-running an organize operation is safe.
"""

import logging
import re
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Mapping

from tqdm import tqdm

from .dates import date_folder_name, resolve_date_taken
from .grouping import (
    DIRECTORY_NOT_FOUND,
    count_files,
    filter_images,
    list_files,
    list_folders,
    split_by_pattern,
    MATCHING_KEY,
)

logger = logging.getLogger(__name__)

MOVE_NOT_FOUND = "Source file or destination directory does not exist."
NO_IMAGES_IN_DIRECTORY = "No image files found in the directory."
DESTINATION_EXISTS = "Destination exists"

NO_EXTENSION_DIR = "no_extension"
DEFAULT_LABEL = "unknown"

FOLDERS_OTHER_DIR = "folders_other"
FOLDERS_EMPTY_DIR = "folders_empty"
FOLDERS_SMALL_DIR = "folders_small"
FOLDERS_LARGE_DIR = "folders_large"
ALL_FILES_DIR = "all_files"
ALL_FOLDERS_DIR = "all_folders"

DEFAULT_SMALL_THRESHOLD = 5
DEFAULT_LARGE_THRESHOLD = 20

MAX_WORKERS = 8

LABEL_STRIP_RE = re.compile(r"[^a-zA-Z0-9_]")
SEPARATOR_RE = re.compile(r"[\\/]")


def sanitize_label(label: str | None, default: str = DEFAULT_LABEL) -> str:
    """Strip everything outside [a-zA-Z0-9_]; fall back to default if empty."""
    cleaned = LABEL_STRIP_RE.sub("", label or "")
    return cleaned or default


def size_bucket(
    file_count: int,
    small_threshold: int = DEFAULT_SMALL_THRESHOLD,
    large_threshold: int = DEFAULT_LARGE_THRESHOLD,
) -> str:
    """
    Bucket a folder by file count.

    Counts strictly between the thresholds land in "small"; there is no
    medium bucket.
    """
    if file_count == 0:
        return "empty"
    if file_count <= small_threshold:
        return "small"
    if file_count >= large_threshold:
        return "large"
    return "small"


def _move_entry(src: Path, dst: Path) -> dict:
    """Helper to move a single file or folder, safe for threads."""
    res = {"src": str(src), "dst": str(dst), "status": "skipped", "error": None}

    try:
        if dst.exists():
            res["error"] = DESTINATION_EXISTS
            return res

        if not src.exists():
            res["error"] = "Source not found"
            return res

        shutil.move(str(src), str(dst))
        res["status"] = "moved"
        return res

    except Exception as e:
        res["error"] = str(e)
        return res


def apply_moves(moves: list[tuple[Path, Path]], desc: str = "Moving") -> int:
    """
    Apply a batch of (source, destination) moves.

    Destination parents are created first, then the moves run in a thread
    pool. Existing destinations are skipped, and only the first move to a
    given destination is attempted.

    Returns:
        Number of entries actually moved.
    """
    # Create parents sequentially before submitting threads
    for _, dst in moves:
        dst.parent.mkdir(parents=True, exist_ok=True)

    seen: set[Path] = set()
    batch = []
    for src, dst in moves:
        if dst in seen:
            logger.info("Skipping %s: duplicate destination %s", src, dst)
            continue
        seen.add(dst)
        batch.append((src, dst))

    if not batch:
        return 0

    moved = 0
    with ThreadPoolExecutor(max_workers=MAX_WORKERS) as pool:
        futures = [pool.submit(_move_entry, src, dst) for src, dst in batch]
        with tqdm(total=len(futures), unit="item", desc=desc, leave=False) as pbar:
            for future in as_completed(futures):
                res = future.result()
                if res["status"] == "moved":
                    moved += 1
                else:
                    logger.info("Skipped %s: %s", res["src"], res["error"])
                pbar.update(1)
    return moved


def move_file(source_file: Path | str, destination_dir: Path | str) -> str:
    """Move one file into an existing directory without overwriting."""
    source_file = Path(source_file)
    destination_dir = Path(destination_dir)
    if not source_file.is_file() or not destination_dir.is_dir():
        return MOVE_NOT_FOUND

    name = source_file.name
    res = _move_entry(source_file, destination_dir / name)
    if res["status"] != "moved":
        logger.info("Move of %s skipped: %s", source_file, res["error"])
        if res["error"] == DESTINATION_EXISTS:
            return f"Skipped {name}: a file with the same name already exists in {destination_dir}."
        return f"Could not move {name}: {res['error']}"
    return f"Moved {name} to {destination_dir}"


def organize_by_extension(directory: Path | str) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    moves = []
    for file in list_files(directory):
        ext = file.suffix.lstrip(".").lower() or NO_EXTENSION_DIR
        moves.append((file, directory / ext / file.name))

    moved = apply_moves(moves, desc="By extension")
    return f"Organized {moved} files by extension in {directory}."


def organize_images_by_context(directory: Path | str, label_map: Mapping[str, str]) -> str:
    """Move each labeled image into a subfolder named after its label."""
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    moves = []
    for file, label in label_map.items():
        file = Path(file)
        if not file.is_file():
            continue
        moves.append((file, directory / sanitize_label(label) / file.name))

    moved = apply_moves(moves, desc="By context")
    return f"Organized {moved} images by context in {directory}."


def organize_images_by_date_and_context(
    directory: Path | str,
    label_map: Mapping[str, str] | None = None,
) -> str:
    """
    Move images into {date}/{context}/ subfolders.

    The date comes from resolve_date_taken(); the context is the image's
    label when label_map has one, otherwise its extension.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    images = filter_images(list_files(directory))
    if not images:
        return NO_IMAGES_IN_DIRECTORY

    moves = []
    for image in images:
        date_dir = date_folder_name(resolve_date_taken(image))
        label = label_map.get(str(image)) if label_map else None
        context = sanitize_label(label or image.suffix.lstrip(".").lower())
        moves.append((image, directory / date_dir / context / image.name))

    moved = apply_moves(moves, desc="By date")
    return f"Organized {moved} image files into date and context subfolders in {directory}."


def organize_folders_by_pattern(directory: Path | str, pattern: str) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    match_dir = directory / f"folders_pattern_{SEPARATOR_RE.sub('_', pattern)}"
    other_dir = directory / FOLDERS_OTHER_DIR
    reserved = {match_dir.name, other_dir.name}
    candidates = [f for f in list_folders(directory) if f.name not in reserved]

    match_dir.mkdir(parents=True, exist_ok=True)
    other_dir.mkdir(parents=True, exist_ok=True)

    groups = split_by_pattern(candidates, pattern)
    moves = []
    for key, folders in groups.items():
        dest = match_dir if key == MATCHING_KEY else other_dir
        moves.extend((folder, dest / folder.name) for folder in folders)

    moved = apply_moves(moves, desc="By pattern")
    return f"Organized {moved} folders by name pattern '{pattern}' in {directory}."


def organize_folders_by_size(
    directory: Path | str,
    small_threshold: int = DEFAULT_SMALL_THRESHOLD,
    large_threshold: int = DEFAULT_LARGE_THRESHOLD,
) -> str:
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    bucket_dirs = {
        "empty": directory / FOLDERS_EMPTY_DIR,
        "small": directory / FOLDERS_SMALL_DIR,
        "large": directory / FOLDERS_LARGE_DIR,
    }
    reserved = {d.name for d in bucket_dirs.values()}
    candidates = [f for f in list_folders(directory) if f.name not in reserved]

    for bucket_dir in bucket_dirs.values():
        bucket_dir.mkdir(parents=True, exist_ok=True)

    moves = []
    for folder in candidates:
        count = count_files(folder)
        if count is None:
            logger.warning("Leaving unreadable folder %s in place", folder)
            continue
        bucket = size_bucket(count, small_threshold, large_threshold)
        moves.append((folder, bucket_dirs[bucket] / folder.name))

    moved = apply_moves(moves, desc="By size")
    return f"Organized {moved} folders by size in {directory}."


def organize_all_by_type(directory: Path | str) -> str:
    """Move files into all_files/ and folders into all_folders/."""
    directory = Path(directory)
    if not directory.is_dir():
        return DIRECTORY_NOT_FOUND

    files_dir = directory / ALL_FILES_DIR
    folders_dir = directory / ALL_FOLDERS_DIR
    reserved = {files_dir.name, folders_dir.name}
    files = list_files(directory)
    folders = [f for f in list_folders(directory) if f.name not in reserved]

    files_dir.mkdir(parents=True, exist_ok=True)
    folders_dir.mkdir(parents=True, exist_ok=True)

    moved_files = apply_moves([(f, files_dir / f.name) for f in files], desc="Files")
    moved_folders = apply_moves([(f, folders_dir / f.name) for f in folders], desc="Folders")
    return f"Organized {moved_files} files and {moved_folders} folders by type in {directory}."
