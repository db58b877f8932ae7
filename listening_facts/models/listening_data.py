"""Domain models for normalized streaming history within the pipeline."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from listening_facts.exceptions import ReadError

END_TIME_FORMAT = "%Y-%m-%d %H:%M"


def parse_end_time(end_time: Optional[str]) -> Optional[datetime]:
    """Parse a canonical `YYYY-MM-DD HH:MM` string as a naive UTC wall-clock datetime."""
    if not isinstance(end_time, str):
        return None
    try:
        return datetime.strptime(end_time, END_TIME_FORMAT)
    except ValueError:
        return None


@dataclass(frozen=True)
class PlayEvent:
    end_time: Optional[str]
    ms_played: int = 0
    track_name: str = "Unknown"
    artist_name: str = "Unknown"

    # Extended schema only
    album_name: Optional[str] = None
    skipped: Optional[bool] = None
    platform: Optional[str] = None
    shuffle: Optional[bool] = None
    offline: Optional[bool] = None
    incognito: Optional[bool] = None
    reason_start: Optional[str] = None
    reason_end: Optional[str] = None

    @property
    def played_at(self) -> Optional[datetime]:
        return parse_end_time(self.end_time)


@dataclass
class NormalizedHistory:
    events: List[PlayEvent] = field(default_factory=list)
    extended: bool = False


@dataclass
class ExtrasContext:
    """Auxiliary export documents; each is None when absent or unparseable."""
    identity: Optional[Any] = None
    follow: Optional[Any] = None
    playlists: Optional[Any] = None
    marquee: Optional[Any] = None
    wrapped: Optional[Any] = None
    library: Optional[Any] = None
    capsule: Optional[Any] = None


@dataclass
class ExtractionResult:
    # Filename -> raw text, in the order files were supplied
    files: Dict[str, str] = field(default_factory=dict)
    failures: List[ReadError] = field(default_factory=list)
