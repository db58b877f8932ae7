"""
Integration tests for NutritionLabelGenerator.

Runs the whole pipeline from an export zip to a label.
"""

import json
import random
from datetime import datetime

import pytest

from listening_facts.exceptions import NoHistoryFoundError
from listening_facts.fun_facts import FALLBACK_FACT
from listening_facts.label import NutritionLabelGenerator


@pytest.fixture
def export_zip(make_zip, standard_streams):
    recent = [{"endTime": "2026-02-14 21:00", "msPlayed": 240000, "artistName": "B", "trackName": "Z"}]
    return make_zip("my_spotify_data.zip", {
        "MyData/StreamingHistory_music_0.json": standard_streams,
        "MyData/StreamingHistory_music_1.json": recent,
        "MyData/Identity.json": {"displayName": "Sam"},
        "MyData/Follow.json": "{corrupt",
        "MyData/YourSoundCapsule.json": {"stats": [{"topGenres": [{"name": "indie", "secondsPlayed": 540}]}]},
    })


class TestNutritionLabelGenerator:
    """End to end tests for label generation."""

    def test_build_all_range(self, export_zip, now):
        """Test a full label over the whole history."""
        generator = NutritionLabelGenerator.from_paths([export_zip])

        label = generator.build("all", now=now, fact_index=0)

        metrics = label.metrics
        assert label.range == "all"
        assert label.range_label == ""
        assert metrics.total_streams == 3
        assert metrics.total_ms == 540000
        assert metrics.top_artists[0].name == "A"
        assert metrics.top_genres[0].name == "indie"
        assert metrics.identity.display_name == "Sam"
        assert metrics.following == 0
        assert metrics.earliest == "2024-01-01"
        assert metrics.latest == "2026-02-14"
        assert label.fun_fact == label.fun_facts[0]

    def test_range_selection_recomputes(self, export_zip, now):
        """Test that each range selection produces its own metrics."""
        generator = NutritionLabelGenerator.from_paths([export_zip])

        week = generator.build("week", now=now, rng=random.Random(1))
        everything = generator.build("all", now=now, rng=random.Random(1))

        assert week.range_label == "Last Week"
        assert week.metrics.total_streams == 1
        assert week.metrics.top_artists[0].name == "B"
        assert everything.metrics.total_streams == 3
        assert len(generator.history.events) == 3

    def test_empty_window_uses_fallback_fact(self, export_zip):
        """Test a window with no events still yields a label."""
        generator = NutritionLabelGenerator.from_paths([export_zip])

        label = generator.build("week", now=datetime(2030, 1, 1))

        assert label.metrics.total_streams == 0
        assert label.fun_facts == ()
        assert label.fun_fact == FALLBACK_FACT

    def test_label_is_json_ready(self, export_zip, now):
        """Test that the label serializes for the renderer."""
        label = NutritionLabelGenerator.from_paths([export_zip]).build("all", now=now, fact_index=0)

        payload = json.loads(json.dumps(label.model_dump()))

        assert payload["metrics"]["unique_tracks"] == 3
        assert len(payload["metrics"]["hour_norm"]) == 24

    def test_uploads_without_history_raise(self):
        """Test the fatal no-history condition from in-memory uploads."""
        with pytest.raises(NoHistoryFoundError):
            NutritionLabelGenerator.from_uploads([("Identity.json", b'{"displayName": "Sam"}')])

    def test_read_failures_are_kept(self, make_zip, standard_streams):
        """Test that unreadable entries are reported alongside a working label."""
        archive = make_zip("export.zip", {
            "StreamingHistory_music_0.json": standard_streams,
            "Marquee.json": b"\xff\xfe",
        })

        generator = NutritionLabelGenerator.from_paths([archive])

        assert [failure.filename for failure in generator.read_failures] == ["Marquee.json"]
        assert generator.extras.marquee is None

    def test_reference_instant_is_required(self, export_zip):
        """Test that building a label never falls back to the wall clock."""
        generator = NutritionLabelGenerator.from_paths([export_zip])

        with pytest.raises(TypeError):
            generator.build("week")
