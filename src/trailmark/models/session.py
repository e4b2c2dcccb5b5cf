"""Session record model.

Defines the two session variants (running with cadence, cycling with
elevation gain), their derived metrics, and the human-readable label.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, NamedTuple

MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


class SessionKind(str, Enum):
    """Session variant tag, also used as the persisted discriminant."""

    RUNNING = "running"
    CYCLING = "cycling"

    @property
    def icon(self) -> str:
        """Glyph shown next to the session on the map and in the list."""
        return "🏃‍♂️" if self is SessionKind.RUNNING else "🚴‍♀️"


class Location(NamedTuple):
    """Geographic coordinates in decimal degrees."""

    latitude: float
    longitude: float


def describe(kind: SessionKind, created_at: datetime) -> str:
    """Build the session label, e.g. ``Running on April 14``.

    Args:
        kind: Session variant.
        created_at: Creation timestamp.

    Returns:
        Label text.
    """
    name = kind.value
    return f"{name[0].upper() + name[1:]} on {MONTHS[created_at.month - 1]} {created_at.day}"


def pace_min_per_km(distance_km: float, duration_min: float) -> float:
    """Pace in minutes per kilometre."""
    return duration_min / distance_km


def speed_km_per_h(distance_km: float, duration_min: float) -> float:
    """Speed in kilometres per hour."""
    return distance_km / (duration_min / 60)


def new_session_id() -> str:
    """Generate an opaque session identifier."""
    return uuid.uuid4().hex[:10]


@dataclass(frozen=True)
class SessionRecord:
    """Fields shared by every session variant."""

    id: str
    created_at: datetime
    location: Location
    distance_km: float
    duration_min: float
    label: str

    kind: ClassVar[SessionKind]


@dataclass(frozen=True)
class TimedCadenceSession(SessionRecord):
    """Running session: cadence in steps per minute, pace derived."""

    cadence_spm: float
    pace_min_per_km: float

    kind: ClassVar[SessionKind] = SessionKind.RUNNING


@dataclass(frozen=True)
class TimedElevationSession(SessionRecord):
    """Cycling session: elevation gain in metres, speed derived."""

    elevation_gain_m: float
    speed_km_per_h: float

    kind: ClassVar[SessionKind] = SessionKind.CYCLING


def create_timed_cadence_session(
    location: Location,
    distance_km: float,
    duration_min: float,
    cadence_spm: float,
    created_at: datetime | None = None,
    session_id: str | None = None,
) -> TimedCadenceSession:
    """Create a running session.

    Inputs are expected to be validated already.

    Args:
        location: Where the session took place.
        distance_km: Distance in kilometres.
        duration_min: Duration in minutes.
        cadence_spm: Cadence in steps per minute.
        created_at: Creation timestamp (defaults to now).
        session_id: Identifier (defaults to a fresh one).

    Returns:
        New TimedCadenceSession.
    """
    created_at = created_at or datetime.now()
    return TimedCadenceSession(
        id=session_id or new_session_id(),
        created_at=created_at,
        location=Location(*location),
        distance_km=distance_km,
        duration_min=duration_min,
        label=describe(SessionKind.RUNNING, created_at),
        cadence_spm=cadence_spm,
        pace_min_per_km=pace_min_per_km(distance_km, duration_min),
    )


def create_timed_elevation_session(
    location: Location,
    distance_km: float,
    duration_min: float,
    elevation_gain_m: float,
    created_at: datetime | None = None,
    session_id: str | None = None,
) -> TimedElevationSession:
    """Create a cycling session.

    Inputs are expected to be validated already.

    Args:
        location: Where the session took place.
        distance_km: Distance in kilometres.
        duration_min: Duration in minutes.
        elevation_gain_m: Elevation gain in metres (may be negative).
        created_at: Creation timestamp (defaults to now).
        session_id: Identifier (defaults to a fresh one).

    Returns:
        New TimedElevationSession.
    """
    created_at = created_at or datetime.now()
    return TimedElevationSession(
        id=session_id or new_session_id(),
        created_at=created_at,
        location=Location(*location),
        distance_km=distance_km,
        duration_min=duration_min,
        label=describe(SessionKind.CYCLING, created_at),
        elevation_gain_m=elevation_gain_m,
        speed_km_per_h=speed_km_per_h(distance_km, duration_min),
    )


def create_session(
    kind: SessionKind,
    location: Location,
    distance_km: float,
    duration_min: float,
    value: float,
    created_at: datetime | None = None,
    session_id: str | None = None,
) -> SessionRecord:
    """Create a session of the given kind.

    ``value`` is the cadence for running and the elevation gain for cycling.
    """
    if kind is SessionKind.RUNNING:
        return create_timed_cadence_session(
            location, distance_km, duration_min, value, created_at, session_id
        )
    return create_timed_elevation_session(
        location, distance_km, duration_min, value, created_at, session_id
    )


def find_session(sessions: list[SessionRecord], session_id: str) -> SessionRecord | None:
    """Find a session by id.

    Args:
        sessions: Sessions to search.
        session_id: Identifier to look for.

    Returns:
        Matching session or None.
    """
    for session in sessions:
        if session.id == session_id:
            return session
    return None
