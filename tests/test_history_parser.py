"""
Tests for StreamingHistoryParser.

Covers schema detection, record mapping and the no-history failure.
"""

import json

import pytest

from listening_facts.exceptions import NoHistoryFoundError
from listening_facts.services.history_parser import normalize_history


class TestSchemaDetection:
    """Tests for choosing between extended and standard history files."""

    def test_extended_files_take_precedence(self, standard_streams, extended_streams):
        """Test that standard files are ignored once extended files exist."""
        files = {
            "StreamingHistory_music_0.json": json.dumps(standard_streams),
            "Streaming_History_Audio_2024.json": json.dumps(extended_streams),
        }

        history = normalize_history(files)

        assert history.extended is True
        assert [e.track_name for e in history.events] == ["X"]
        assert history.events[0].end_time == "2024-12-12 10:02"

    def test_standard_files_concatenated_in_order(self, standard_streams):
        """Test fallback to standard history in file encounter order."""
        later = [{"endTime": "2024-02-01 08:00", "msPlayed": 1000, "artistName": "B", "trackName": "Z"}]
        files = {
            "StreamingHistory_music_1.json": json.dumps(later),
            "StreamingHistory_music_0.json": json.dumps(standard_streams),
        }

        history = normalize_history(files)

        assert history.extended is False
        assert [e.track_name for e in history.events] == ["Z", "X", "Y"]

    def test_no_history_files_raises(self):
        """Test that extras alone are not enough."""
        files = {"Identity.json": '{"displayName": "Sam"}', "Follow.json": "{}"}

        with pytest.raises(NoHistoryFoundError, match="No streaming history found"):
            normalize_history(files)

    def test_extended_without_music_does_not_fall_back(self, standard_streams):
        """Test that extended files holding only podcasts still win over standard files."""
        podcast = [{"ts": "2024-01-01T00:00:00Z", "ms_played": 1000, "episode_name": "Ep 1"}]
        files = {
            "Streaming_History_Audio_2024.json": json.dumps(podcast),
            "StreamingHistory_music_0.json": json.dumps(standard_streams),
        }

        with pytest.raises(NoHistoryFoundError):
            normalize_history(files)

    def test_malformed_history_file_is_skipped(self, standard_streams):
        """Test that one broken chunk does not abort the batch."""
        files = {
            "StreamingHistory_music_0.json": "[{not json",
            "StreamingHistory_music_1.json": json.dumps(standard_streams),
            "StreamingHistory_music_2.json": '{"not": "a list"}',
        }

        history = normalize_history(files)

        assert len(history.events) == 2


class TestRecordMapping:
    """Tests for mapping raw records onto canonical play events."""

    def test_extended_record_mapping(self, extended_streams):
        """Test timestamp truncation and extended field passthrough."""
        history = normalize_history({"Streaming_History_Audio_2024_0.json": json.dumps(extended_streams)})

        played = history.events[0]
        assert played.end_time == "2024-12-12 10:02"
        assert played.ms_played == 5000
        assert played.artist_name == "A"
        assert played.album_name == "Album"
        assert played.skipped is True
        assert played.shuffle is True
        assert played.platform == "android"
        assert played.reason_start == "trackdone"
        assert played.reason_end == "fwdbtn"

    def test_extended_record_defaults(self):
        """Test type appropriate defaults for absent extended fields."""
        records = [{"ts": "2024-12-12T23:59:59Z", "master_metadata_track_name": "X", "skipped": None}]

        played = normalize_history({"Streaming_History_Audio_2024.json": json.dumps(records)}).events[0]

        assert played.ms_played == 0
        assert played.artist_name == "Unknown"
        assert played.album_name == ""
        assert played.skipped is False
        assert played.shuffle is False
        assert played.offline is False
        assert played.incognito is False
        assert played.platform == ""

    def test_extended_record_without_track_is_dropped(self, extended_streams):
        """Test that non-music entries are removed."""
        records = extended_streams + [{"ts": "2024-12-13T10:00:00Z", "ms_played": 9000,
                                       "master_metadata_track_name": None}]

        history = normalize_history({"Streaming_History_Audio_2024.json": json.dumps(records)})

        assert len(history.events) == 1

    def test_only_non_music_entry_raises(self):
        """Test that dropping every extended entry is the no-history failure."""
        records = [{"ts": "2024-12-12T10:02:52Z", "ms_played": 5000}]

        with pytest.raises(NoHistoryFoundError):
            normalize_history({"Streaming_History_Audio_2024.json": json.dumps(records)})

    def test_standard_record_defaults(self):
        """Test defaults for missing or malformed standard fields."""
        records = [
            {"endTime": "2024-01-01 10:00"},
            {"endTime": "yesterday", "msPlayed": -5, "artistName": "", "trackName": "Song"},
            "not a record",
        ]

        events = normalize_history({"StreamingHistory_music_0.json": json.dumps(records)}).events

        assert len(events) == 2
        assert events[0].ms_played == 0
        assert events[0].track_name == "Unknown"
        assert events[0].artist_name == "Unknown"
        assert events[0].skipped is None
        assert events[1].end_time is None
        assert events[1].ms_played == 0
        assert events[1].artist_name == "Unknown"
