"""Reduces canonical play events and export extras into the label metrics."""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from listening_facts.config import settings
from listening_facts.models.label import (
    ArtistStat,
    GenreStat,
    IdentitySummary,
    ListeningMetrics,
    TrackStat,
    WrappedSummary,
)
from listening_facts.models.listening_data import ExtrasContext, PlayEvent

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000
MINUTES_PER_DAY = 1440

# Sunday first, so ties resolve towards the start of the week
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

SUPER_LISTENER_SEGMENT = "Super Listeners"


def split_duration(ms: int) -> Tuple[int, int]:
    """Whole hours and the minutes left over."""
    return ms // MS_PER_HOUR, (ms % MS_PER_HOUR) // MS_PER_MINUTE


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _int(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None


def _str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _list(container: Any, key: str) -> List[Any]:
    if isinstance(container, dict) and isinstance(container.get(key), list):
        return container[key]
    return []


def _ranked(totals: Dict[Any, int], top_n: int) -> List[Tuple[Any, int]]:
    # sorted() is stable with reverse=True, so ties keep first-encounter order
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)[:top_n]


class ListeningAggregator:
    def __init__(self, top_n: Optional[int] = None):
        self.top_n = top_n if top_n is not None else settings.TOP_N

    def _top_genres(self, capsule: Any) -> List[GenreStat]:
        genre_seconds: Dict[str, int] = {}
        for period in _list(capsule, "stats"):
            for genre in _list(period, "topGenres"):
                if not isinstance(genre, dict) or not isinstance(genre.get("name"), str):
                    continue
                seconds = _int(genre.get("secondsPlayed")) or 0
                genre_seconds[genre["name"]] = genre_seconds.get(genre["name"], 0) + seconds
        return [GenreStat(name=name, seconds=seconds) for name, seconds in _ranked(genre_seconds, self.top_n)]

    @staticmethod
    def _identity(identity: Any) -> Optional[IdentitySummary]:
        if not isinstance(identity, dict):
            return None
        return IdentitySummary(
            display_name=_str(identity.get("displayName")),
            image_url=_str(identity.get("largeImageUrl")) or _str(identity.get("imageUrl")),
        )

    @staticmethod
    def _wrapped(wrapped: Any) -> Dict[str, Any]:
        """Copies the known yearly fields whose parent section exists. Missing stays missing."""
        if not isinstance(wrapped, dict):
            return {}
        w: Dict[str, Any] = {}

        def section(name: str) -> Optional[Dict[str, Any]]:
            value = wrapped.get(name)
            return value if isinstance(value, dict) and value else None

        yearly = section("yearlyMetrics")
        if yearly:
            total_ms = _int(yearly.get("totalMsListened"))
            w["minutes"] = total_ms // MS_PER_MINUTE if total_ms is not None else None
        clubs = section("clubs")
        if clubs:
            w["club"] = _str(clubs.get("userClub"))
        top_artists = section("topArtists")
        if top_artists:
            w["num_artists"] = _int(top_artists.get("numUniqueArtists"))
        top_tracks = section("topTracks")
        if top_tracks:
            w["num_tracks"] = _int(top_tracks.get("numUniqueTracks"))
        party = section("party")
        if party:
            w["days"] = _int(party.get("totalNumListeningDays"))
            w["streak"] = _int(party.get("streakNumListeningDays"))
            w["discovered"] = _int(party.get("numArtistsDiscovered"))
            w["skip"] = _number(party.get("percentMusicSkips"))
            w["night"] = _number(party.get("percentListenedNight"))
            w["explicit"] = _number(party.get("percentListenedExplicit"))
            w["sad"] = _number(party.get("percentSadTracks"))
            w["party"] = _number(party.get("percentPartyTracks"))
            w["love"] = _number(party.get("percentLoveTracks"))
            w["chill"] = _number(party.get("percentChillTracks"))
        top_albums = section("topAlbums")
        if top_albums:
            w["completed_albums"] = _int(top_albums.get("numCompletedAlbums"))
        top_genres = section("topGenres")
        if top_genres:
            w["total_genres"] = _int(top_genres.get("totalNumGenres"))
        listening_age = section("listeningAge")
        if listening_age:
            w["listening_age"] = _int(listening_age.get("listeningAge"))
            w["window_start_year"] = _int(listening_age.get("windowStartYear"))
            w["decade_phase"] = _str(listening_age.get("decadePhase"))
        return {key: value for key, value in w.items() if value is not None}

    @staticmethod
    def _social(extras: ExtrasContext) -> Dict[str, int]:
        playlists = _list(extras.playlists, "playlists")
        return {
            "following": len(_list(extras.follow, "userIsFollowing")),
            "followers": len(_list(extras.follow, "userIsFollowedBy")),
            "playlist_count": len(playlists),
            "playlist_tracks": sum(len(_list(playlist, "items")) for playlist in playlists),
            "library_tracks": len(_list(extras.library, "tracks")),
            "super_listeners": sum(
                1 for tag in (extras.marquee if isinstance(extras.marquee, list) else [])
                if isinstance(tag, dict) and tag.get("segment") == SUPER_LISTENER_SEGMENT
            ),
        }

    def aggregate(self, events: Sequence[PlayEvent], extras: ExtrasContext, extended: bool = False) -> ListeningMetrics:
        total_ms = 0
        artist_ms: Dict[str, int] = {}
        track_totals: Dict[Tuple[str, str], List[int]] = {}  # (artist, track) -> [ms, plays]
        hour_ms = [0] * 24
        day_ms = [0] * 7
        has_dated_events = False
        earliest: Optional[str] = None
        latest: Optional[str] = None
        skip_count = 0
        shuffle_count = 0

        for event in events:
            ms = event.ms_played
            total_ms += ms
            artist_ms[event.artist_name] = artist_ms.get(event.artist_name, 0) + ms
            totals = track_totals.setdefault((event.artist_name, event.track_name), [0, 0])
            totals[0] += ms
            totals[1] += 1
            if event.skipped:
                skip_count += 1
            if event.shuffle:
                shuffle_count += 1

            played_at = event.played_at
            if played_at is None:
                continue
            has_dated_events = True
            hour_ms[played_at.hour] += ms
            day_ms[(played_at.weekday() + 1) % 7] += ms
            day = event.end_time[:10]
            if earliest is None or day < earliest:
                earliest = day
            if latest is None or day > latest:
                latest = day

        total_streams = len(events)
        total_minutes = total_ms // MS_PER_MINUTE

        top_artists = []
        for name, ms in _ranked(artist_ms, self.top_n):
            hours, minutes = split_duration(ms)
            top_artists.append(ArtistStat(name=name, ms=ms, hours=hours, minutes=minutes))

        top_tracks = []
        ranked_tracks = _ranked({key: totals[0] for key, totals in track_totals.items()}, self.top_n)
        for (artist, track), ms in ranked_tracks:
            hours, minutes = split_duration(ms)
            top_tracks.append(TrackStat(
                artist=artist, track=track, ms=ms, plays=track_totals[(artist, track)][1],
                hours=hours, minutes=minutes
            ))

        max_hour = max(hour_ms)
        hour_norm = [value / max_hour if max_hour > 0 else 0.0 for value in hour_ms]

        wrapped = self._wrapped(extras.wrapped)
        if extended and total_streams > 0 and "skip" not in wrapped:
            wrapped["skip"] = skip_count / total_streams * 100

        # Half-up rounding of the mean track length, in whole seconds
        avg_track_sec = (total_ms + total_streams * 500) // (total_streams * 1000) if total_streams else 0

        metrics = ListeningMetrics(
            total_streams=total_streams,
            total_ms=total_ms,
            total_hours=total_minutes // 60,
            remaining_minutes=total_minutes % 60,
            total_minutes=total_minutes,
            total_days=round(total_minutes / MINUTES_PER_DAY, 1),
            unique_artists=len(artist_ms),
            unique_tracks=len(track_totals),
            top_artists=top_artists,
            top_tracks=top_tracks,
            top_genres=self._top_genres(extras.capsule),
            hour_ms=hour_ms,
            hour_norm=hour_norm,
            peak_hour=hour_ms.index(max_hour),
            top_day_of_week=DAY_NAMES[day_ms.index(max(day_ms))] if has_dated_events else None,
            earliest=earliest,
            latest=latest,
            avg_track_sec=avg_track_sec,
            identity=self._identity(extras.identity),
            wrapped=WrappedSummary(**wrapped),
            has_extended_data=extended,
            skip_count=skip_count if extended else None,
            shuffle_count=shuffle_count if extended else None,
            **self._social(extras),
        )
        logger.info(f"Aggregated {total_streams} streams: {metrics.unique_artists} artists, {metrics.unique_tracks} tracks.")
        return metrics


def aggregate(events: Sequence[PlayEvent], extras: ExtrasContext, extended: bool = False) -> ListeningMetrics:
    return ListeningAggregator().aggregate(events, extras, extended)
