"""Shared fixtures for the spotify_stats test suite."""
import builtins
import errno
import json
import os
from pathlib import Path
from types import SimpleNamespace

import pytest


# ── Entry builders matching the export formats ──────────────────────────

def song(artist, track, ms_played, ts="2023-01-01T12:00:00Z", album="Album"):
    """Extended streaming history entry for a song."""
    return {
        "ts": ts,
        "platform": "android",
        "ms_played": ms_played,
        "conn_country": "NL",
        "master_metadata_track_name": track,
        "master_metadata_album_artist_name": artist,
        "master_metadata_album_album_name": album,
        "spotify_track_uri": "spotify:track:4uLU6hMCjMI75M1A2tKUQC",
        "episode_name": None,
        "episode_show_name": None,
        "spotify_episode_uri": None,
        "reason_start": "trackdone",
        "reason_end": "trackdone",
        "shuffle": False,
        "skipped": None,
        "offline": False,
        "incognito_mode": False,
    }


def episode(show, name, ms_played, ts="2023-01-01T12:00:00Z"):
    """Extended streaming history entry for a podcast episode."""
    return {
        "ts": ts,
        "platform": "ios",
        "ms_played": ms_played,
        "master_metadata_track_name": None,
        "master_metadata_album_artist_name": None,
        "master_metadata_album_album_name": None,
        "spotify_track_uri": None,
        "episode_name": name,
        "episode_show_name": show,
        "spotify_episode_uri": "spotify:episode:0Q86acNRm6V9GYx55SXKwf",
    }


def audiobook(title, chapter, ms_played, ts="2023-01-01T12:00:00Z"):
    """Extended streaming history entry with no song or episode names."""
    return {
        "ts": ts,
        "ms_played": ms_played,
        "master_metadata_track_name": None,
        "master_metadata_album_artist_name": None,
        "episode_name": None,
        "episode_show_name": None,
        "audiobook_title": title,
        "audiobook_chapter_title": chapter,
    }


@pytest.fixture
def entries():
    """Access to the entry builders from tests."""
    return SimpleNamespace(song=song, episode=episode, audiobook=audiobook)


@pytest.fixture
def export_dir(tmp_path):
    """An empty export folder inside the test's temporary directory."""
    folder = tmp_path / "my_spotify_data"
    folder.mkdir()
    return folder


@pytest.fixture
def write_export(export_dir):
    """Write a list of entries as one JSON file of the export folder."""
    def _write(name, data):
        path = export_dir / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def scenario_dir(export_dir, write_export):
    """Two files: A has one TrackX play, B has another TrackX play and one TrackY play."""
    write_export("Streaming_History_Audio_A.json", [
        song("Artist1", "TrackX", 1000, ts="2023-01-01T10:00:00Z"),
    ])
    write_export("Streaming_History_Audio_B.json", [
        song("Artist1", "TrackX", 2000, ts="2023-01-02T10:00:00Z"),
        song("Artist2", "TrackY", 500, ts="2023-01-03T10:00:00Z"),
    ])
    return export_dir


@pytest.fixture
def cache_path(tmp_path) -> Path:
    return tmp_path / "cache" / "spotify_stats.cache"


@pytest.fixture
def deny_open(monkeypatch):
    """Make opening one particular file fail with EACCES, even when running as root."""
    real_open = builtins.open

    def _deny(target):
        target = Path(target)

        def guarded_open(file, *args, **kwargs):
            if isinstance(file, (str, os.PathLike)) and Path(file) == target:
                raise PermissionError(errno.EACCES, "Permission denied", str(file))
            return real_open(file, *args, **kwargs)

        monkeypatch.setattr(builtins, "open", guarded_open)
        return target
    return _deny
