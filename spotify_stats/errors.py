"""Exception taxonomy for loading, caching and querying streaming history"""
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class StreamingHistoryError(Exception):
    """Base class for every error raised by spotify_stats"""


class HistoryIOError(StreamingHistoryError):
    """The export folder or one of its files could not be accessed"""

    def __init__(self, message: str, path: Optional[PathLike] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(f"{message}: {path}" if path is not None else message)


class NotFoundError(HistoryIOError):
    """The export folder does not exist"""


class UnreadableError(HistoryIOError):
    """A file in the export folder could not be read"""


class ParseError(StreamingHistoryError):
    """A file or entry in the export does not have the expected shape"""

    def __init__(self, message: str, path: Optional[PathLike] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(f"{path}: {message}" if path is not None else message)


class MalformedError(ParseError):
    """A file is not a JSON array of entries, or an entry cannot be parsed"""


class UnrecognizedShapeError(ParseError):
    """An entry carries none of the recognized name fields"""


class CacheError(StreamingHistoryError):
    """The cache file is missing, corrupt or written by another format version.

    Always recovered by rebuilding from the export folder.
    """


class QueryError(StreamingHistoryError):
    """A query was called with invalid arguments"""
