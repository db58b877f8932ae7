"""Metrics and label models handed to the renderer."""
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ArtistStat(FrozenModel):
    name: str
    ms: int = Field(description="Cumulative milliseconds played")
    hours: int
    minutes: int = Field(description="Minutes remaining after whole hours")


class TrackStat(FrozenModel):
    artist: str
    track: str
    ms: int
    plays: int
    hours: int
    minutes: int


class GenreStat(FrozenModel):
    name: str
    seconds: int = Field(description="Cumulative seconds across all capsule periods")


class IdentitySummary(FrozenModel):
    display_name: Optional[str] = None
    image_url: Optional[str] = None


class WrappedSummary(FrozenModel):
    """Flattened yearly summary. None means the export did not say, not zero."""
    minutes: Optional[int] = None
    club: Optional[str] = None
    num_artists: Optional[int] = None
    num_tracks: Optional[int] = None
    days: Optional[int] = None
    streak: Optional[int] = None
    discovered: Optional[int] = None
    skip: Optional[float] = None
    night: Optional[float] = None
    explicit: Optional[float] = None
    sad: Optional[float] = None
    party: Optional[float] = None
    love: Optional[float] = None
    chill: Optional[float] = None
    completed_albums: Optional[int] = None
    total_genres: Optional[int] = None
    listening_age: Optional[int] = None
    window_start_year: Optional[int] = None
    decade_phase: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class ListeningMetrics(FrozenModel):
    # Volume
    total_streams: int = 0
    total_ms: int = 0
    total_hours: int = 0
    remaining_minutes: int = Field(0, description="Minutes left after whole hours")
    total_minutes: int = 0
    total_days: float = Field(0.0, description="Listening time expressed in 24h days, one decimal")
    unique_artists: int = 0
    unique_tracks: int = 0

    # Rankings
    top_artists: Tuple[ArtistStat, ...] = Field(default_factory=tuple)
    top_tracks: Tuple[TrackStat, ...] = Field(default_factory=tuple)
    top_genres: Tuple[GenreStat, ...] = Field(default_factory=tuple)

    # Time of day / week
    hour_ms: Tuple[int, ...] = (0,) * 24
    hour_norm: Tuple[float, ...] = (0.0,) * 24
    peak_hour: int = 0
    top_day_of_week: Optional[str] = None
    earliest: Optional[str] = None
    latest: Optional[str] = None
    avg_track_sec: int = 0

    # Library / social
    identity: Optional[IdentitySummary] = None
    following: int = 0
    followers: int = 0
    playlist_count: int = 0
    playlist_tracks: int = 0
    library_tracks: int = 0
    super_listeners: int = 0

    wrapped: WrappedSummary = Field(default_factory=WrappedSummary)

    # Extended history only
    has_extended_data: bool = False
    skip_count: Optional[int] = None
    shuffle_count: Optional[int] = None


class NutritionLabel(FrozenModel):
    range: str = Field(description="Range token the metrics were computed for")
    range_label: str = Field("", description="Display label for the range, empty for 'all'")
    metrics: ListeningMetrics
    fun_facts: Tuple[str, ...] = Field(default_factory=tuple, description="Every qualifying fun fact")
    fun_fact: str = Field(description="The fact selected for display")
