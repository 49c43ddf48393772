"""Domain models for aggregated Spotify listening history"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

from spotify_stats.models.entry import Identity, RecordKind


class Play(NamedTuple):
    """One stream of an identity"""
    duration_ms: int
    ended_at: datetime


def chronological(play: Play) -> Tuple[datetime, int]:
    return play.ended_at, play.duration_ms


@dataclass
class PlayStats:
    """
    Accumulated listening for one identity.

    Invariant: total_duration_ms is the sum of the plays' durations and
    play_count is the number of plays. Plays are kept in chronological order
    once the aggregate is built, so two aggregates of the same plays compare
    equal regardless of the order the plays were folded in.
    """
    total_duration_ms: int = 0
    play_count: int = 0
    plays: List[Play] = field(default_factory=list)
    kinds: Set[RecordKind] = field(default_factory=set)

    def add(self, play: Play, kind: RecordKind) -> None:
        """Record one play. Call sort_plays() once all plays are added."""
        self.plays.append(play)
        self.total_duration_ms += play.duration_ms
        self.play_count += 1
        self.kinds.add(kind)

    def sort_plays(self) -> None:
        self.plays.sort(key=chronological)

    def merged(self, other: 'PlayStats') -> 'PlayStats':
        """Combine two accumulators of the same identity into a new one"""
        return PlayStats(
            total_duration_ms=self.total_duration_ms + other.total_duration_ms,
            play_count=self.play_count + other.play_count,
            plays=sorted(self.plays + other.plays, key=chronological),
            kinds=self.kinds | other.kinds
        )

    def copy(self) -> 'PlayStats':
        return PlayStats(
            total_duration_ms=self.total_duration_ms,
            play_count=self.play_count,
            plays=list(self.plays),
            kinds=set(self.kinds)
        )

    def is_consistent(self) -> bool:
        return (
            self.play_count == len(self.plays)
            and self.total_duration_ms == sum(play.duration_ms for play in self.plays)
        )

    @property
    def first_played(self) -> Optional[datetime]:
        return self.plays[0].ended_at if self.plays else None

    @property
    def last_played(self) -> Optional[datetime]:
        return self.plays[-1].ended_at if self.plays else None


class StreamingHistory:
    """
    Aggregate of a streaming history export: identity -> PlayStats.

    Built once per run by the aggregator (or restored from the cache) and
    only read afterwards.
    """

    def __init__(self, entries: Optional[Dict[Identity, PlayStats]] = None):
        self._entries: Dict[Identity, PlayStats] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Identity]:
        return iter(self._entries)

    def __contains__(self, identity) -> bool:
        return identity in self._entries

    def __getitem__(self, identity: Identity) -> PlayStats:
        return self._entries[identity]

    def __eq__(self, other) -> bool:
        if not isinstance(other, StreamingHistory):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None

    def __repr__(self) -> str:
        return f"StreamingHistory({len(self._entries)} identities)"

    def get(self, identity: Identity) -> Optional[PlayStats]:
        return self._entries.get(identity)

    def items(self):
        return self._entries.items()

    def is_consistent(self) -> bool:
        return all(stats.is_consistent() for stats in self._entries.values())


@dataclass
class ListeningSummary:
    """Statistics about a whole listening history"""
    total_minutes: int
    play_count: int
    identity_count: int
    primary_names: List[str]
    activity_period_days: int
    first_listen_date: Optional[datetime]
    last_listen_date: Optional[datetime]
