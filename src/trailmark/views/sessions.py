"""Session list rendering.

Formats sessions as HTML list entries and keeps a headless list view that
the controller renders into.
"""

from __future__ import annotations

import html
from dataclasses import dataclass

from trailmark.models.session import (
    SessionRecord,
    TimedCadenceSession,
    TimedElevationSession,
)


def _detail(icon: str, value: object, unit: str) -> str:
    return f"""
          <div class="workout__details">
            <span class="workout__icon">{icon}</span>
            <span class="workout__value">{html.escape(str(value))}</span>
            <span class="workout__unit">{unit}</span>
          </div>"""


def _format_value(value: float) -> str:
    """Format a number without a trailing ``.0`` for whole values."""
    return str(int(value)) if float(value).is_integer() else str(value)


def format_session_entry(session: SessionRecord) -> str:
    """Render a session as an HTML list entry.

    Args:
        session: Session to render.

    Returns:
        HTML ``<li>`` fragment.
    """
    kind = session.kind
    parts = [
        f'<li class="workout workout--{kind.value}" data-id="{html.escape(session.id)}">',
        f'\n          <h2 class="workout__title">{html.escape(session.label)}</h2>',
        _detail(kind.icon, _format_value(session.distance_km), "km"),
        _detail("⏱", _format_value(session.duration_min), "min"),
    ]

    if isinstance(session, TimedCadenceSession):
        parts.append(_detail("⚡️", f"{session.pace_min_per_km:.1f}", "min/km"))
        parts.append(_detail("🦶🏼", _format_value(session.cadence_spm), "spm"))
    elif isinstance(session, TimedElevationSession):
        parts.append(_detail("⚡️", f"{session.speed_km_per_h:.1f}", "km/h"))
        parts.append(_detail("⛰", _format_value(session.elevation_gain_m), "m"))

    parts.append("\n        </li>")
    return "".join(parts)


def format_session_line(session: SessionRecord) -> str:
    """Render a session as a single plain-text line for terminals."""
    if isinstance(session, TimedCadenceSession):
        metrics = (
            f"{session.pace_min_per_km:.1f} min/km, "
            f"{_format_value(session.cadence_spm)} spm"
        )
    elif isinstance(session, TimedElevationSession):
        metrics = (
            f"{session.speed_km_per_h:.1f} km/h, "
            f"{_format_value(session.elevation_gain_m)} m"
        )
    else:
        metrics = ""
    return (
        f"[{session.id}] {session.kind.icon} {session.label}: "
        f"{_format_value(session.distance_km)} km in "
        f"{_format_value(session.duration_min)} min ({metrics})"
    )


@dataclass
class ListEntry:
    """A rendered list entry."""

    session_id: str
    html: str


class SessionListView:
    """Headless session list.

    New entries go to the top, directly below the form, so the newest
    session is listed first.
    """

    def __init__(self) -> None:
        self.entries: list[ListEntry] = []
        self.reset_visible = False

    def insert(self, session_id: str, entry_html: str) -> None:
        self.entries.insert(0, ListEntry(session_id, entry_html))

    def set_reset_visible(self, visible: bool) -> None:
        self.reset_visible = visible
