"""Derived "fun facts" shown at the bottom of the label."""
import math
import random
from datetime import date
from typing import List, Optional

from listening_facts.models.label import ListeningMetrics

FALLBACK_FACT = "You have impeccable taste (and data)!"

SPEED_OF_SOUND_M_PER_S = 343
MOON_DISTANCE_KM = 384_400
EARTH_CIRCUMFERENCE_KM = 40_075
MARATHON_KM = 42.195

MOVIE_HOURS = 2
AUDIOBOOK_HOURS = 7
NIGHT_OF_SLEEP_HOURS = 8
NY_TOKYO_FLIGHT_HOURS = 12


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_duration(hours: int, minutes: int) -> str:
    return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"


def day_span(earliest: Optional[str], latest: Optional[str]) -> Optional[int]:
    """Days between the first and last listening date, at least 1."""
    if not earliest or not latest:
        return None
    delta = date.fromisoformat(latest) - date.fromisoformat(earliest)
    return max(1, delta.days)


def build_fun_fact_candidates(metrics: ListeningMetrics) -> List[str]:
    facts = []
    top_artist = metrics.top_artists[0] if metrics.top_artists else None
    top_track = metrics.top_tracks[0] if metrics.top_tracks else None
    span = day_span(metrics.earliest, metrics.latest)

    if top_artist:
        km = _round_half_up(top_artist.ms / 1000 * SPEED_OF_SOUND_M_PER_S / 1000)
        duration = format_duration(top_artist.hours, top_artist.minutes)
        facts.append(f"You listened to {top_artist.name} for {duration}. "
                     f"Travelling at the speed of sound, that's {km:,} km!")
        if km > MOON_DISTANCE_KM:
            facts.append(f"That's enough {top_artist.name} to reach the Moon.")
        elif km > EARTH_CIRCUMFERENCE_KM:
            facts.append(f"You've circled the Earth with {top_artist.name}!")
        marathons = math.floor(km / MARATHON_KM)
        if marathons > 1:
            facts.append(f"Your {top_artist.name} listening could soundtrack {marathons:,} marathons!")

    if top_track:
        duration = format_duration(top_track.hours, top_track.minutes)
        facts.append(f"\"{top_track.track}\" was played {top_track.plays} times. "
                     f"That's {duration} of pure commitment.")
        if span is not None:
            per_day = f"{top_track.plays / span:.1f}"
            if float(per_day) >= 1:
                facts.append(f"You averaged {per_day}x per day on \"{top_track.track}\". An anthem.")

    total_hours = metrics.total_minutes / 60
    movies = math.floor(total_hours / MOVIE_HOURS)
    if movies > 10:
        facts.append(f"Your listening time equals {movies:,} movies (at {MOVIE_HOURS} hours each).")
    books = math.floor(total_hours / AUDIOBOOK_HOURS)
    if books > 2:
        facts.append(f"You could have finished {books:,} audiobooks (at {AUDIOBOOK_HOURS} hours each).")
    flights = math.floor(total_hours / NY_TOKYO_FLIGHT_HOURS)
    if flights > 1:
        facts.append(f"That's {flights:,} flights from New York to Tokyo!")
    nights = math.floor(total_hours / NIGHT_OF_SLEEP_HOURS)
    if nights > 5:
        facts.append(f"You could have slept for {nights:,} full nights in the time you spent listening!")

    if span is not None:
        minutes_per_day = _round_half_up(metrics.total_minutes / span)
        if minutes_per_day > 60:
            remark = "over an hour daily! Serious dedication!"
        elif minutes_per_day > 30:
            remark = "a solid listening habit!"
        else:
            remark = "a chill listening pace."
        facts.append(f"You averaged {minutes_per_day} minutes per day of music. That's {remark}")

    night = metrics.wrapped.night
    if night is not None:
        if night > 50:
            facts.append(f"Certified Night Owl: {night:.0f}% of your listening happens after dark.")
        elif night < 20:
            facts.append(f"Early Bird: only {night:.0f}% of your listening is at night.")

    skip = metrics.wrapped.skip
    if skip is not None:
        if skip > 40:
            facts.append(f"You skipped {skip:.0f}% of tracks. Picky listener alert.")
        elif skip < 15:
            facts.append(f"Only a {skip:.0f}% skip rate. You commit to every song.")

    if metrics.unique_artists > 500:
        facts.append(f"{metrics.unique_artists:,} unique artists. Your taste spans a whole continent.")
    elif metrics.unique_artists > 100:
        facts.append(f"{metrics.unique_artists:,} unique artists streamed. Explorer energy.")

    return facts


def select_fun_fact(candidates: List[str], rng: Optional[random.Random] = None, index: Optional[int] = None) -> str:
    """Pick one fact, by explicit index when given, otherwise uniformly with `rng`."""
    if not candidates:
        return FALLBACK_FACT
    if index is not None:
        return candidates[index % len(candidates)]
    return (rng or random.Random()).choice(candidates)
