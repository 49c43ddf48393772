"""Read-only search and ranking over a built StreamingHistory"""
from collections import defaultdict
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from spotify_stats.errors import QueryError
from spotify_stats.models.entry import Identity, RecordKind
from spotify_stats.models.history import ListeningSummary, PlayStats, StreamingHistory

GroupKey = Union[str, Identity]


class Component(str, Enum):
    """Which part of an identity to search or group by"""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    IDENTITY = "identity"


def _component(value) -> Component:
    try:
        return Component(value)
    except ValueError:
        raise QueryError(f"Unknown identity component: {value!r}")


def _group_key(identity: Identity, group_by: Component) -> GroupKey:
    if group_by is Component.PRIMARY:
        return identity[0]
    if group_by is Component.SECONDARY:
        return identity[1]
    return identity


def search_by_identity_component(history: StreamingHistory, text: str,
                                 which: Union[Component, str] = Component.PRIMARY,
                                 substring: bool = False) -> List[Tuple[Identity, PlayStats]]:
    """
    Find identities whose primary or secondary name matches the text.

    Matching is case-sensitive: exact equality on the whole name, or
    containment when substring is set. Results are sorted by identity; no
    match gives an empty list.
    """
    which = _component(which)
    if which is Component.IDENTITY:
        raise QueryError("Search matches a single name; use 'primary' or 'secondary'")

    matches = []
    for identity, stats in history.items():
        name = _group_key(identity, which)
        if (text in name) if substring else (name == text):
            matches.append((identity, stats))
    matches.sort(key=lambda item: item[0])
    return matches


def top_n(history: StreamingHistory, n: int, group_by: Union[Component, str] = Component.PRIMARY,
          kind: Optional[Union[RecordKind, str]] = None) -> List[Tuple[GroupKey, int]]:
    """
    Rank groups by total listening time.

    Identities sharing the grouped component are summed (e.g. every track of
    an artist). The result holds min(n, number of groups) pairs of
    (group key, total ms), sorted by total descending and then by key
    ascending so equal totals always come out in the same order.

    Args:
        history: Aggregate to rank
        n: Maximum number of groups; 0 gives an empty list
        group_by: primary, secondary, or identity for individual identities
        kind: Only count identities that were played as this kind
    """
    if n < 0:
        raise QueryError(f"Cannot rank a negative number of groups: {n}")
    group_by = _component(group_by)
    if kind is not None:
        try:
            kind = RecordKind(kind)
        except ValueError:
            raise QueryError(f"Unknown record kind: {kind!r}")
    if n == 0:
        return []

    totals: Dict[GroupKey, int] = defaultdict(int)
    for identity, stats in history.items():
        if kind is not None and kind not in stats.kinds:
            continue
        totals[_group_key(identity, group_by)] += stats.total_duration_ms

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:n]


def summarize(history: StreamingHistory) -> ListeningSummary:
    """Overall statistics of a history"""
    total_ms = 0
    play_count = 0
    primary_names = set()
    first_listen = None
    last_listen = None

    for (primary, _), stats in history.items():
        total_ms += stats.total_duration_ms
        play_count += stats.play_count
        if primary:
            primary_names.add(primary)
        if stats.plays:
            if first_listen is None or stats.first_played < first_listen:
                first_listen = stats.first_played
            if last_listen is None or stats.last_played > last_listen:
                last_listen = stats.last_played

    return ListeningSummary(
        total_minutes=total_ms // 60000,
        play_count=play_count,
        identity_count=len(history),
        primary_names=sorted(primary_names),
        activity_period_days=(last_listen - first_listen).days if first_listen else 0,
        first_listen_date=first_listen,
        last_listen_date=last_listen
    )
