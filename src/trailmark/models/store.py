"""Session store.

Serializes the full session list as a JSON array under a single key of a
key-value substrate and rebuilds typed session records on load.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from trailmark.models.session import (
    Location,
    SessionKind,
    SessionRecord,
    TimedCadenceSession,
    TimedElevationSession,
)

if TYPE_CHECKING:
    from trailmark.lib.kvstore import KeyValueStore

logger = logging.getLogger("trailmark.store")

DEFAULT_STORAGE_KEY = "workouts"


class PersistenceError(OSError):
    """Raised when the session list cannot be written."""


class ReconstructionError(ValueError):
    """Raised when a stored record cannot be turned back into a session."""


def encode_session(session: SessionRecord) -> dict[str, Any]:
    """Convert a session to a JSON-serializable field bag.

    Derived fields are included so decoding never recomputes them.

    Args:
        session: Session to encode.

    Returns:
        Dictionary representation.
    """
    data: dict[str, Any] = {
        "type": session.kind.value,
        "id": session.id,
        "created_at": session.created_at.isoformat(),
        "location": [session.location.latitude, session.location.longitude],
        "distance_km": session.distance_km,
        "duration_min": session.duration_min,
        "label": session.label,
    }
    if isinstance(session, TimedCadenceSession):
        data["cadence_spm"] = session.cadence_spm
        data["pace_min_per_km"] = session.pace_min_per_km
    elif isinstance(session, TimedElevationSession):
        data["elevation_gain_m"] = session.elevation_gain_m
        data["speed_km_per_h"] = session.speed_km_per_h
    return data


def _number(data: dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ReconstructionError(f"Field {key!r} is not a number: {value!r}")
    return value


def decode_session(data: Any) -> SessionRecord:
    """Create a session from a stored field bag.

    Args:
        data: Decoded JSON object.

    Returns:
        TimedCadenceSession or TimedElevationSession, chosen by the ``type`` tag.

    Raises:
        ReconstructionError: If the tag is unknown or a field is missing or
            has the wrong type.
    """
    if not isinstance(data, dict):
        raise ReconstructionError(f"Stored session is not an object: {data!r}")

    try:
        kind = SessionKind(data.get("type"))
    except (TypeError, ValueError):
        raise ReconstructionError(f"Unknown session type: {data.get('type')!r}") from None

    try:
        latitude, longitude = data["location"]
        common: dict[str, Any] = {
            "id": str(data["id"]),
            "created_at": datetime.fromisoformat(data["created_at"]),
            "location": Location(float(latitude), float(longitude)),
            "distance_km": _number(data, "distance_km"),
            "duration_min": _number(data, "duration_min"),
            "label": str(data["label"]),
        }

        if kind is SessionKind.RUNNING:
            return TimedCadenceSession(
                **common,
                cadence_spm=_number(data, "cadence_spm"),
                pace_min_per_km=_number(data, "pace_min_per_km"),
            )
        return TimedElevationSession(
            **common,
            elevation_gain_m=_number(data, "elevation_gain_m"),
            speed_km_per_h=_number(data, "speed_km_per_h"),
        )
    except ReconstructionError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise ReconstructionError(f"Malformed {kind.value} session: {e}") from e


class SessionStore:
    """Persists the session list as one blob in a key-value substrate."""

    def __init__(self, substrate: KeyValueStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        """Initialize the store.

        Args:
            substrate: Underlying key-value storage.
            key: Key holding the encoded session list.
        """
        self.substrate = substrate
        self.key = key

    def save(self, sessions: list[SessionRecord]) -> None:
        """Write the whole session list, replacing any previous value.

        Args:
            sessions: Sessions in creation order.

        Raises:
            PersistenceError: If encoding or the substrate write fails.
        """
        try:
            blob = json.dumps([encode_session(s) for s in sessions], ensure_ascii=False)
            self.substrate.set(self.key, blob)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save %d sessions: %s", len(sessions), e)
            raise PersistenceError(f"Could not save sessions: {e}") from e

        logger.debug("Saved %d sessions under %r", len(sessions), self.key)

    def load(self) -> list[SessionRecord]:
        """Read the session list.

        Missing or unreadable data yields an empty list.

        Returns:
            Sessions in stored order.
        """
        try:
            blob = self.substrate.get(self.key)
        except (OSError, ValueError) as e:
            logger.warning("Could not read stored sessions: %s", e)
            return []

        if blob is None:
            return []

        try:
            return self._decode(blob)
        except ReconstructionError as e:
            logger.warning("Discarding stored sessions: %s", e)
            return []

    def _decode(self, blob: str) -> list[SessionRecord]:
        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            raise ReconstructionError(f"Invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise ReconstructionError(f"Expected a list, got {type(data).__name__}")

        sessions = [decode_session(item) for item in data]
        logger.debug("Loaded %d sessions from %r", len(sessions), self.key)
        return sessions

    def reset(self) -> None:
        """Delete the stored session list.

        Deleting a missing key is a no-op. Substrate errors are logged and the
        reset still completes.
        """
        try:
            self.substrate.delete(self.key)
        except (OSError, ValueError) as e:
            logger.error("Could not delete stored sessions under %r: %s", self.key, e)
            return
        logger.info("Cleared stored sessions under %r", self.key)
