"""Headless session form.

Mirrors the visible state of the input form: whether it is shown, which
variant field is visible, and the notices raised to the user.
"""

from __future__ import annotations

import time

from trailmark.models.session import SessionKind


class FormPanel:
    """Headless form widget."""

    def __init__(self) -> None:
        self.visible = False
        self.focused: str | None = None
        self.variant_field = "cadence"
        self.notices: list[str] = []
        self.cleared = 0
        self._interactable_at = 0.0

    def show(self) -> None:
        self.visible = True

    def focus_distance(self) -> None:
        self.focused = "distance"

    def clear(self) -> None:
        self.cleared += 1

    def hide(self, delay: float) -> None:
        """Hide the form; it can be shown again only after ``delay`` seconds."""
        self.visible = False
        self.focused = None
        self._interactable_at = time.monotonic() + delay

    @property
    def interactable(self) -> bool:
        return time.monotonic() >= self._interactable_at

    def toggle_variant_fields(self, kind: SessionKind) -> None:
        self.variant_field = "cadence" if kind is SessionKind.RUNNING else "elevation"

    def notify(self, message: str) -> None:
        self.notices.append(message)
