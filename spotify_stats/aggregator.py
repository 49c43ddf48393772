"""Order-independent folding of classified records into a StreamingHistory

fold() and merge() agree: for any split of a record container into parts,
merging the folds of the parts (in any order) equals folding the whole. The
parallel rebuild in build_history() relies on this.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from itertools import chain
from pathlib import Path
from typing import Dict, Iterable, Union

from spotify_stats.models.entry import ClassifiedRecord, Identity
from spotify_stats.models.history import Play, PlayStats, StreamingHistory
from spotify_stats.services.loader import iter_history_files, load_classified_file

logger = logging.getLogger(__name__)


def fold(records: Iterable[ClassifiedRecord]) -> StreamingHistory:
    """Accumulate records per identity. Kinds sharing an identity are combined."""
    accumulators: Dict[Identity, PlayStats] = {}
    for classified in records:
        record = classified.record
        stats = accumulators.get(record.identity)
        if stats is None:
            stats = accumulators[record.identity] = PlayStats()
        stats.add(Play(record.duration_ms, record.ended_at), classified.kind)

    for stats in accumulators.values():
        stats.sort_plays()
    return StreamingHistory(accumulators)


def merge(left: StreamingHistory, right: StreamingHistory) -> StreamingHistory:
    """Combine two partial aggregates without modifying either"""
    entries: Dict[Identity, PlayStats] = {
        identity: stats.copy() for identity, stats in left.items()
    }
    for identity, stats in right.items():
        existing = entries.get(identity)
        entries[identity] = existing.merged(stats) if existing else stats.copy()
    return StreamingHistory(entries)


def _fold_file(path: Path) -> StreamingHistory:
    return fold(load_classified_file(path))


def build_history(folder: Union[str, Path], workers: int = 1) -> StreamingHistory:
    """
    Rebuild the aggregate from the JSON files of an export folder.

    Args:
        folder: Export folder holding the JSON files
        workers: Number of threads; above 1 each file is folded separately
            and the partial aggregates are merged as they complete. Parsing
            and validation hold the GIL, so this mostly pays off when reading
            the files is slow (network or cold storage), not on a local SSD

    Raises:
        HistoryIOError: If the folder or a file cannot be accessed
        ParseError: If a file or entry is malformed
    """
    files = iter_history_files(folder)
    if not files:
        logger.warning(f"No JSON files found in {folder}. The history will be empty.")
        return StreamingHistory()

    logger.info(f"Rebuilding streaming history from {len(files)} file(s) in {folder} (workers: {workers})")
    if workers <= 1 or len(files) == 1:
        history = fold(chain.from_iterable(load_classified_file(path) for path in files))
    else:
        history = StreamingHistory()
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(_fold_file, path): path for path in files}
            for future in as_completed(futures):
                history = merge(history, future.result())
                logger.debug(f"Merged partial aggregate of {futures[future].name}")

    logger.info(f"Aggregated {len(history)} identities")
    return history
