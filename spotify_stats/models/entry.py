"""Raw export entries and the canonical records they normalize into"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# (primary_name, secondary_name), e.g. (artist, track) or (show, episode)
Identity = Tuple[str, str]


class RecordKind(str, Enum):
    """What kind of stream an entry describes, inferred from its fields"""
    SONG = "song"
    EPISODE = "episode"
    VIDEO_OR_OTHER = "video_or_other"


class RawEntry(BaseModel):
    """
    One entry of a Spotify export file, before classification.

    Accepts both export formats:
        Extended streaming history: ts, ms_played, master_metadata_*,
            episode_*, audiobook_* and spotify_*_uri fields.
        Account data (StreamingHistory*.json): endTime, msPlayed and either
            artistName/trackName or podcastName/episodeName.

    Only the end timestamp and the played duration are required. Unknown
    fields are ignored.
    """
    model_config = ConfigDict(extra='ignore')

    ts: datetime = Field(validation_alias=AliasChoices('ts', 'endTime'))
    ms_played: int = Field(ge=0, validation_alias=AliasChoices('ms_played', 'msPlayed'))

    # Songs
    master_metadata_album_artist_name: Optional[str] = None
    master_metadata_track_name: Optional[str] = None
    spotify_track_uri: Optional[str] = None
    artistName: Optional[str] = None
    trackName: Optional[str] = None

    # Podcast episodes
    episode_show_name: Optional[str] = None
    episode_name: Optional[str] = None
    spotify_episode_uri: Optional[str] = None
    podcastName: Optional[str] = None
    episodeName: Optional[str] = None

    # Audiobooks
    audiobook_title: Optional[str] = None
    audiobook_chapter_title: Optional[str] = None
    audiobook_uri: Optional[str] = None
    audiobook_chapter_uri: Optional[str] = None

    @field_validator('ts', mode='before')
    @classmethod
    def parse_spotify_datetime(cls, value):
        """Parse '2023-02-22T07:01:41Z' and '2023-02-22 07:01' style timestamps"""
        if isinstance(value, str):
            if value.endswith('Z'):
                value = value[:-1] + '+00:00'
            return datetime.fromisoformat(value)
        return value

    @field_validator('ts')
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Spotify exports are in UTC even when the offset is omitted
        if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@dataclass(frozen=True)
class CanonicalRecord:
    """A single play reduced to what aggregation needs"""
    identity: Identity
    duration_ms: int
    ended_at: datetime


@dataclass(frozen=True)
class ClassifiedRecord:
    """A canonical record tagged with the kind it was classified as"""
    kind: RecordKind
    record: CanonicalRecord
