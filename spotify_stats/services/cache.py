"""Compressed on-disk cache of the aggregated streaming history

File layout:
    4 bytes   magic b'SPSC'
    2 bytes   format version, big-endian
    rest      zlib (DEFLATE) compressed MessagePack document
              {"signature": str, "history": [[primary, secondary, total_ms,
               play_count, [kind, ...], [[duration_ms, ended_at], ...]], ...]}

The cache is only an optimization. Anything wrong with it (missing, corrupt,
other format version, stale signature) falls back to a rebuild from the
export folder, and failing to write it never fails the run.
"""
import hashlib
import logging
import os
import struct
import tempfile
import zlib
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import msgpack
from msgpack.exceptions import UnpackException

from spotify_stats.aggregator import build_history
from spotify_stats.config import settings
from spotify_stats.errors import CacheError, UnreadableError
from spotify_stats.models.entry import Identity, RecordKind
from spotify_stats.models.history import Play, PlayStats, StreamingHistory
from spotify_stats.services.loader import iter_history_files

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MAGIC = b'SPSC'
FORMAT_VERSION = 1
HEADER = struct.Struct('>4sH')
COMPRESSION_LEVEL = 9


def folder_signature(folder: PathLike, mode: str = 'stat') -> str:
    """
    Fingerprint the JSON files of an export folder.

    'stat' hashes each file's name, size and modification time; 'content'
    hashes the file bytes. Adding, removing or rewriting a file changes both.
    """
    if mode not in ('stat', 'content'):
        raise ValueError(f"Unknown signature mode: {mode}")

    checksum = hashlib.sha256()
    for path in iter_history_files(folder):
        checksum.update(path.name.encode('utf-8') + b'\0')
        try:
            if mode == 'content':
                with open(path, 'rb') as f:
                    for chunk in iter(lambda: f.read(65536), b''):
                        checksum.update(chunk)
            else:
                stat = path.stat()
                checksum.update(f"{stat.st_size}:{stat.st_mtime_ns}".encode('ascii'))
        except OSError as e:
            logger.error(f"Signature calculation failed for {path}: {e}")
            raise UnreadableError(f"Could not read file ({e.strerror})", path) from e
        checksum.update(b'\0')
    return checksum.hexdigest()


class HistoryCache:
    """Reads and writes the aggregate cache file"""

    def __init__(self, cache_path: PathLike, signature_mode: str = 'stat'):
        self.cache_path = Path(cache_path)
        self.signature_mode = signature_mode

    @staticmethod
    def encode(history: StreamingHistory, signature: str) -> bytes:
        """Serialize and compress an aggregate, prefixed with the format header"""
        rows = []
        for (primary, secondary), stats in sorted(history.items(), key=lambda item: item[0]):
            rows.append([
                primary,
                secondary,
                stats.total_duration_ms,
                stats.play_count,
                sorted(kind.value for kind in stats.kinds),
                [[play.duration_ms, play.ended_at] for play in stats.plays],
            ])
        payload = msgpack.packb({'signature': signature, 'history': rows}, datetime=True)
        return HEADER.pack(MAGIC, FORMAT_VERSION) + zlib.compress(payload, COMPRESSION_LEVEL)

    @staticmethod
    def decode(data: bytes) -> Tuple[str, StreamingHistory]:
        """
        Inverse of encode().

        Returns:
            Tuple[str, StreamingHistory]: (folder signature, aggregate)

        Raises:
            CacheError: If the header, payload or invariants do not check out
        """
        if len(data) < HEADER.size:
            raise CacheError("Cache file is truncated")
        magic, version = HEADER.unpack_from(data)
        if magic != MAGIC:
            raise CacheError("Not a spotify_stats cache file")
        if version != FORMAT_VERSION:
            raise CacheError(f"Unsupported cache format version {version} (expected {FORMAT_VERSION})")

        try:
            document = msgpack.unpackb(zlib.decompress(data[HEADER.size:]), timestamp=3)
            signature = document['signature']
            entries: Dict[Identity, PlayStats] = {}
            for primary, secondary, total, count, kinds, plays in document['history']:
                stats = PlayStats(
                    total_duration_ms=total,
                    play_count=count,
                    plays=[Play(duration_ms, ended_at) for duration_ms, ended_at in plays],
                    kinds={RecordKind(kind) for kind in kinds}
                )
                if not all(isinstance(play.ended_at, datetime) for play in stats.plays):
                    raise CacheError(f"Play timestamps of {(primary, secondary)} are not datetimes")
                if not stats.is_consistent():
                    raise CacheError(f"Totals of {(primary, secondary)} do not match its plays")
                entries[(primary, secondary)] = stats
        except (zlib.error, UnpackException, ValueError, TypeError, KeyError) as e:
            raise CacheError(f"Cache payload is corrupt: {e}") from e

        if not isinstance(signature, str):
            raise CacheError("Cache signature is not a string")
        return signature, StreamingHistory(entries)

    def read(self, signature: str) -> Optional[StreamingHistory]:
        """Return the cached aggregate if it exists, decodes and matches the signature"""
        try:
            with open(self.cache_path, 'rb') as f:
                data = f.read()
        except FileNotFoundError:
            logger.info(f"No cache found at {self.cache_path}")
            return None
        except OSError as e:
            logger.warning(f"Could not read cache {self.cache_path}: {e}")
            return None

        try:
            cached_signature, history = self.decode(data)
        except CacheError as e:
            logger.warning(f"Ignoring unusable cache {self.cache_path}: {e}")
            return None

        if cached_signature != signature:
            logger.info(f"Cache {self.cache_path} is stale, the export folder has changed")
            return None
        return history

    def write(self, history: StreamingHistory, signature: str) -> bool:
        """
        Write the aggregate through a temporary file and an atomic rename.

        Returns:
            bool: Whether the cache was written. Failures are logged only.
        """
        temp_path = None
        try:
            data = self.encode(history, signature)
            directory = self.cache_path.parent
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile('wb', dir=directory, prefix=f".{self.cache_path.name}.",
                                             delete=False) as f:
                temp_path = f.name
                f.write(data)
            os.replace(temp_path, self.cache_path)
            temp_path = None
            logger.info(f"Wrote cache of {len(history)} identities to {self.cache_path} ({len(data)} bytes)")
            return True
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Failed to write cache {self.cache_path}: {e}. Continuing without it.")
            return False
        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError as e:
                    logger.debug(f"Could not remove temporary cache file {temp_path}: {e}")

    def load_or_build(self, folder: PathLike, workers: int = 1) -> StreamingHistory:
        """
        Restore the aggregate from the cache when it is fresh, otherwise rebuild
        it from the folder and write it back.

        Raises:
            HistoryIOError: If the export folder or one of its files is inaccessible
            ParseError: If the rebuild meets a malformed file or entry
        """
        signature = folder_signature(folder, self.signature_mode)
        history = self.read(signature)
        if history is not None:
            logger.info(f"Loaded {len(history)} identities from cache {self.cache_path}")
            return history

        history = build_history(folder, workers)
        self.write(history, signature)
        return history


def load_or_build(folder_path: Optional[PathLike] = None, cache_path: Optional[PathLike] = None,
                  workers: Optional[int] = None, use_cache: Optional[bool] = None) -> StreamingHistory:
    """
    Resolve the aggregate for a folder using the configured cache settings.

    Arguments left as None fall back to settings; use_cache=False rebuilds
    from the export folder without reading or writing the cache file.
    """
    folder_path = folder_path if folder_path is not None else settings.DATA_DIR
    workers = workers if workers is not None else settings.LOAD_WORKERS
    use_cache = use_cache if use_cache is not None else settings.CACHE_ENABLED

    if not use_cache:
        logger.info("Cache disabled, rebuilding from the export folder")
        return build_history(folder_path, workers)

    cache = HistoryCache(
        cache_path if cache_path is not None else settings.CACHE_PATH,
        signature_mode=settings.CACHE_SIGNATURE
    )
    return cache.load_or_build(folder_path, workers)
