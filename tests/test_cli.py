"""Tests for the command line entry point."""
import json

import pytest

from spotify_stats import __main__ as cli
from spotify_stats.__main__ import run


def run_json(capsys, argv):
    run(argv)
    return json.loads(capsys.readouterr().out)


def test_top_primary(capsys, scenario_dir, cache_path):
    output = run_json(capsys, ["--data", str(scenario_dir), "--cache", str(cache_path), "top", "1"])
    assert output["query"] == "top"
    assert output["results"] == [{"rank": 1, "key": "Artist1", "total_ms_played": 3000}]
    assert cache_path.exists()


def test_top_identity(capsys, scenario_dir, cache_path):
    output = run_json(capsys, [
        "--data", str(scenario_dir), "--cache", str(cache_path),
        "top", "5", "--group-by", "identity",
    ])
    assert [row["key"] for row in output["results"]] == [["Artist1", "TrackX"], ["Artist2", "TrackY"]]


def test_search(capsys, scenario_dir, cache_path):
    output = run_json(capsys, [
        "--data", str(scenario_dir), "--cache", str(cache_path),
        "search", "TrackY", "--by", "secondary",
    ])
    [row] = output["results"]
    assert row["primary"] == "Artist2"
    assert row["play_count"] == 1
    assert row["kinds"] == ["song"]
    assert row["first_played"] == "2023-01-03T10:00:00+00:00"


def test_summary_without_cache(capsys, scenario_dir, cache_path):
    output = run_json(capsys, [
        "--data", str(scenario_dir), "--cache", str(cache_path), "--no-cache", "summary",
    ])
    [summary] = output["results"]
    assert summary["play_count"] == 3
    assert summary["primary_names"] == ["Artist1", "Artist2"]
    assert not cache_path.exists()


def test_bad_folder_exits_with_error(capsys, tmp_path, cache_path):
    with pytest.raises(SystemExit) as excinfo:
        run(["--data", str(tmp_path / "missing"), "--cache", str(cache_path), "summary"])
    assert excinfo.value.code == 1
    assert capsys.readouterr().out == ""


def test_negative_top_exits_with_error(scenario_dir, cache_path):
    with pytest.raises(SystemExit) as excinfo:
        run(["--data", str(scenario_dir), "--cache", str(cache_path), "top", "-1"])
    assert excinfo.value.code == 1


def test_deeply_nested_file_exits_with_error(capsys, export_dir, cache_path):
    (export_dir / "deep.json").write_text("[" * 200000 + "]" * 200000, encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        run(["--data", str(export_dir), "--cache", str(cache_path), "--no-cache", "summary"])
    assert excinfo.value.code == 1
    assert capsys.readouterr().out == ""


def test_cache_flag_goes_through_settings_wrapper(scenario_dir, cache_path, monkeypatch):
    calls = []
    real = cli.load_or_build

    def recording(*args, **kwargs):
        calls.append((args, kwargs))
        return real(*args, **kwargs)

    monkeypatch.setattr(cli, "load_or_build", recording)
    run(["--data", str(scenario_dir), "--cache", str(cache_path), "--no-cache", "top", "1"])
    run(["--data", str(scenario_dir), "--cache", str(cache_path), "top", "1"])
    assert [kwargs["use_cache"] for _, kwargs in calls] == [False, None]
    assert cache_path.exists()
