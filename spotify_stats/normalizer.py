"""Shape-sniffing of raw export entries into classified canonical records

Spotify does not tag its entries with a kind, so the kind is inferred from
which name fields are filled in. Recognized (primary, secondary) field pairs,
checked in order:

    EPISODE         (episode_show_name, episode_name)
                    (podcastName, episodeName)
    SONG            (master_metadata_album_artist_name, master_metadata_track_name)
                    (artistName, trackName)
    VIDEO_OR_OTHER  (audiobook_title, audiobook_chapter_title)
                    ("", first of spotify_track_uri, spotify_episode_uri,
                         audiobook_chapter_uri, audiobook_uri)

A pair matches when either of its fields is a non-empty string; the missing
half becomes "". Entries matching no pair are rejected.
"""
from typing import Iterable, List, Optional, Tuple

from spotify_stats.errors import UnrecognizedShapeError
from spotify_stats.models.entry import (
    CanonicalRecord,
    ClassifiedRecord,
    Identity,
    RawEntry,
    RecordKind,
)

FieldPair = Tuple[str, str]

EPISODE_FIELDS: Tuple[FieldPair, ...] = (
    ('episode_show_name', 'episode_name'),
    ('podcastName', 'episodeName'),
)
SONG_FIELDS: Tuple[FieldPair, ...] = (
    ('master_metadata_album_artist_name', 'master_metadata_track_name'),
    ('artistName', 'trackName'),
)
OTHER_FIELDS: Tuple[FieldPair, ...] = (
    ('audiobook_title', 'audiobook_chapter_title'),
)
URI_FIELDS: Tuple[str, ...] = (
    'spotify_track_uri',
    'spotify_episode_uri',
    'audiobook_chapter_uri',
    'audiobook_uri',
)

FIELD_SETS = (
    (RecordKind.EPISODE, EPISODE_FIELDS),
    (RecordKind.SONG, SONG_FIELDS),
    (RecordKind.VIDEO_OR_OTHER, OTHER_FIELDS),
)


def _match(entry: RawEntry, pairs: Iterable[FieldPair]) -> Optional[Identity]:
    for primary_field, secondary_field in pairs:
        primary = getattr(entry, primary_field) or ''
        secondary = getattr(entry, secondary_field) or ''
        if primary or secondary:
            return primary, secondary
    return None


def _detect(entry: RawEntry) -> Tuple[RecordKind, Identity]:
    for kind, pairs in FIELD_SETS:
        identity = _match(entry, pairs)
        if identity is not None:
            return kind, identity

    for uri_field in URI_FIELDS:
        uri = getattr(entry, uri_field)
        if uri:
            return RecordKind.VIDEO_OR_OTHER, ('', uri)

    raise UnrecognizedShapeError(
        f"Entry ending at {entry.ts.isoformat()} has none of the recognized name fields"
    )


def classify(entry: RawEntry) -> ClassifiedRecord:
    """Classify a raw entry and rewrite it as a canonical record"""
    kind, identity = _detect(entry)
    return ClassifiedRecord(
        kind=kind,
        record=CanonicalRecord(
            identity=identity,
            duration_ms=entry.ms_played,
            ended_at=entry.ts
        )
    )


def classify_all(entries: Iterable[RawEntry]) -> List[ClassifiedRecord]:
    return [classify(entry) for entry in entries]
