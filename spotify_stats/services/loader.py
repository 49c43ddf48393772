"""Reading a Spotify export folder into raw and classified entries"""
import json
import logging
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from spotify_stats.errors import MalformedError, NotFoundError, UnreadableError, UnrecognizedShapeError
from spotify_stats.models.entry import ClassifiedRecord, RawEntry
from spotify_stats.normalizer import classify

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def iter_history_files(folder: PathLike) -> List[Path]:
    """
    List the JSON files directly inside an export folder.

    Other files (the export's ReadMe, PDFs, a cache file) and subfolders are
    skipped. The list is sorted for stable logs only; nothing downstream
    depends on the order.
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise NotFoundError("Export folder not found", folder)
    try:
        return sorted(
            path for path in folder.iterdir()
            if path.suffix.lower() == '.json' and path.is_file()
        )
    except OSError as e:
        logger.error(f"Could not list export folder {folder}: {e}")
        raise UnreadableError(f"Could not list folder ({e.strerror})", folder) from e


def load_file(path: PathLike) -> List[RawEntry]:
    """Parse one export file, which must hold a JSON array of entries"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            batch = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise MalformedError(f"Invalid JSON ({e})", path) from e
    except OSError as e:
        raise UnreadableError(f"Could not read file ({e.strerror})", path) from e

    if not isinstance(batch, list):
        raise MalformedError("Expected a JSON array of entries", path)

    entries = []
    for index, item in enumerate(batch):
        try:
            entries.append(RawEntry.model_validate(item))
        except ValidationError as e:
            raise MalformedError(f"Entry {index} could not be parsed: {e}", path) from e
    logger.debug(f"Loaded {len(entries)} entries from {path.name}")
    return entries


def load(folder: PathLike) -> List[RawEntry]:
    """Concatenate the entries of every JSON file in the folder"""
    entries: List[RawEntry] = []
    files = iter_history_files(folder)
    for path in files:
        entries.extend(load_file(path))
    logger.info(f"Loaded {len(entries)} entries from {len(files)} file(s) in {folder}")
    return entries


def load_classified_file(path: PathLike) -> List[ClassifiedRecord]:
    """Load and classify one file, reporting unrecognized entries against it"""
    records = []
    for index, entry in enumerate(load_file(path)):
        try:
            records.append(classify(entry))
        except UnrecognizedShapeError as e:
            raise MalformedError(f"Entry {index}: {e}", path) from e
    return records


def load_classified(folder: PathLike) -> List[ClassifiedRecord]:
    records: List[ClassifiedRecord] = []
    for path in iter_history_files(folder):
        records.extend(load_classified_file(path))
    return records
