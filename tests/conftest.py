import json
import zipfile
from datetime import datetime

import pytest

from listening_facts.models.listening_data import ExtrasContext, PlayEvent


@pytest.fixture
def now():
    return datetime(2026, 2, 15, 14, 38)


@pytest.fixture
def make_zip(tmp_path):
    """Write a zip archive whose members are given as name -> str/bytes/json-serializable."""
    def _make(name, members):
        path = tmp_path / name
        with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
            for member_name, content in members.items():
                if member_name.endswith('/'):
                    zf.writestr(zipfile.ZipInfo(member_name), "")
                elif isinstance(content, (str, bytes)):
                    zf.writestr(member_name, content)
                else:
                    zf.writestr(member_name, json.dumps(content))
        return path
    return _make


@pytest.fixture
def standard_streams():
    return [
        {"endTime": "2024-01-01 10:00", "msPlayed": 180000, "artistName": "A", "trackName": "X"},
        {"endTime": "2024-01-01 10:05", "msPlayed": 120000, "artistName": "A", "trackName": "Y"},
    ]


@pytest.fixture
def extended_streams():
    return [
        {
            "ts": "2024-12-12T10:02:52Z",
            "ms_played": 5000,
            "master_metadata_track_name": "X",
            "master_metadata_album_artist_name": "A",
            "master_metadata_album_album_name": "Album",
            "platform": "android",
            "reason_start": "trackdone",
            "reason_end": "fwdbtn",
            "shuffle": True,
            "skipped": True,
            "offline": False,
            "incognito_mode": False,
        },
    ]


@pytest.fixture
def no_extras():
    return ExtrasContext()


def event(end_time, ms, artist="A", track="X", **kwargs):
    return PlayEvent(end_time=end_time, ms_played=ms, artist_name=artist, track_name=track, **kwargs)


@pytest.fixture
def make_event():
    return event
