"""Application controller for trailmark.

Owns the application state and reacts to named events: startup, a location
picked on the map, form submission, variant toggle, list entry activation,
and reset. Handlers are plain functions that receive the state and the
collaborating widgets explicitly.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from trailmark.lib.geolocation import LocationUnavailable
from trailmark.models.session import (
    Location,
    SessionKind,
    SessionRecord,
    create_session,
    find_session,
)
from trailmark.models.store import PersistenceError, SessionStore
from trailmark.services.forms import FormSubmission, ValidationError, validate_submission
from trailmark.views.sessions import format_session_entry

if TYPE_CHECKING:
    from collections.abc import Callable

    from trailmark.lib.geolocation import LocationSensor

logger = logging.getLogger("trailmark.controller")

DEFAULT_ZOOM = 13
DEFAULT_FORM_TRANSITION_DELAY = 1.0

NOT_SAVED_MESSAGE = "Session recorded, but it could not be saved: {error}"


class Event(str, Enum):
    """Named application events."""

    STARTUP = "startup"
    LOCATION_PICKED = "location-picked"
    FORM_SUBMITTED = "form-submitted"
    VARIANT_TOGGLED = "variant-toggled"
    LIST_ENTRY_ACTIVATED = "list-entry-activated"
    RESET_REQUESTED = "reset-requested"


class FormState(str, Enum):
    """Visibility of the session form."""

    CLOSED = "closed"
    OPEN = "open"


class MapWidget(Protocol):
    def set_view(self, location: Location, zoom: int, animate: bool = False) -> None: ...

    def add_marker(
        self,
        location: Location,
        popup: str,
        popup_class: str = "",
        keep_open: bool = False,
        session_id: str | None = None,
    ) -> Any: ...

    def on_click(self, handler: Callable[[Location], None]) -> None: ...


class FormWidget(Protocol):
    def show(self) -> None: ...

    def focus_distance(self) -> None: ...

    def clear(self) -> None: ...

    def hide(self, delay: float) -> None: ...

    @property
    def interactable(self) -> bool: ...

    def toggle_variant_fields(self, kind: SessionKind) -> None: ...

    def notify(self, message: str) -> None: ...


class ListWidget(Protocol):
    def insert(self, session_id: str, entry_html: str) -> None: ...

    def set_reset_visible(self, visible: bool) -> None: ...


@dataclass
class AppState:
    """Runtime state, built once at process start."""

    sessions: list[SessionRecord] = field(default_factory=list)
    pending_location: Location | None = None
    form: FormState = FormState.CLOSED
    active_kind: SessionKind = SessionKind.RUNNING
    map_ready: bool = False


@dataclass
class Collaborators:
    """External widgets and services the handlers act on."""

    map_view: MapWidget
    form_view: FormWidget
    list_view: ListWidget
    store: SessionStore
    sensor: LocationSensor
    restart: Callable[[], None]
    zoom: int = DEFAULT_ZOOM
    form_transition_delay: float = DEFAULT_FORM_TRANSITION_DELAY


class EventDispatcher:
    """Registry of handler functions keyed by event name."""

    def __init__(self) -> None:
        self._handlers: dict[Event, list[Callable[..., None]]] = defaultdict(list)

    def register(self, event: Event | str, handler: Callable[..., None]) -> None:
        self._handlers[Event(event)].append(handler)

    def emit(self, event: Event | str, *args: Any) -> None:
        """Run every handler registered for an event, in registration order.

        Args:
            event: Event name.
            *args: Arguments passed to each handler.
        """
        event = Event(event)
        handlers = self._handlers.get(event, [])
        if not handlers:
            logger.debug("No handlers for event %s", event.value)
        for handler in handlers:
            handler(*args)


# Rendering


def render_marker(session: SessionRecord, map_view: MapWidget) -> None:
    """Place a session marker with an always-open popup."""
    map_view.add_marker(
        session.location,
        popup=f"{session.kind.icon} {session.label}",
        popup_class=f"{session.kind.value}-popup",
        keep_open=True,
        session_id=session.id,
    )


def render_list_entry(session: SessionRecord, list_view: ListWidget) -> None:
    """Add a session to the list."""
    list_view.insert(session.id, format_session_entry(session))


def _close_form(state: AppState, collab: Collaborators) -> None:
    collab.form_view.clear()
    collab.form_view.hide(collab.form_transition_delay)
    state.form = FormState.CLOSED
    state.pending_location = None


# Handlers


def load_map(
    state: AppState,
    collab: Collaborators,
    position: Location,
    dispatcher: EventDispatcher,
) -> None:
    """Initialize the map at the current position and draw stored sessions.

    Args:
        state: Application state.
        collab: Collaborators.
        position: Current position.
        dispatcher: Dispatcher receiving map clicks as location-picked events.
    """
    collab.map_view.set_view(position, collab.zoom)
    collab.map_view.add_marker(position, popup="You are here", keep_open=True)
    collab.map_view.on_click(lambda location: dispatcher.emit(Event.LOCATION_PICKED, location))
    state.map_ready = True

    for session in state.sessions:
        render_marker(session, collab.map_view)


def on_startup(state: AppState, collab: Collaborators, dispatcher: EventDispatcher) -> None:
    """Load stored sessions, render them, and initialize the map.

    If the current position is unavailable the map stays uninitialized and
    map-dependent events are ignored.
    """
    state.sessions = collab.store.load()
    logger.info("Loaded %d stored sessions", len(state.sessions))

    for session in state.sessions:
        render_list_entry(session, collab.list_view)
    collab.list_view.set_reset_visible(bool(state.sessions))

    try:
        position = collab.sensor.current_position()
    except LocationUnavailable as e:
        logger.warning("Map unavailable: %s", e)
        return

    load_map(state, collab, position, dispatcher)


def on_location_picked(state: AppState, collab: Collaborators, location: Location) -> None:
    """Open the form for a picked location, or move the pending location.

    Picks made while the form is still hiding after a submit are ignored.
    """
    if state.form is FormState.CLOSED and not collab.form_view.interactable:
        logger.debug("Form is still closing, ignoring picked location")
        return

    state.pending_location = Location(*location)
    if state.form is FormState.OPEN:
        logger.debug("Form already open, pending location replaced")
        return

    state.form = FormState.OPEN
    collab.form_view.show()
    collab.form_view.focus_distance()


def on_variant_toggled(state: AppState, collab: Collaborators, kind: SessionKind | None = None) -> None:
    """Swap the variant-specific input field.

    Without an explicit kind the other variant is selected.
    """
    if kind is None:
        kind = SessionKind.CYCLING if state.active_kind is SessionKind.RUNNING else SessionKind.RUNNING
    kind = SessionKind(kind)
    if kind is state.active_kind:
        return
    state.active_kind = kind
    collab.form_view.toggle_variant_fields(kind)


def on_form_submitted(
    state: AppState, collab: Collaborators, submission: FormSubmission
) -> SessionRecord | None:
    """Validate a submission and record the new session.

    Args:
        state: Application state.
        collab: Collaborators.
        submission: Raw form values.

    Returns:
        The new session, or None if the form was closed or input was invalid.
    """
    if state.form is not FormState.OPEN or state.pending_location is None:
        logger.warning("Ignoring form submission without a picked location")
        return None

    try:
        data = validate_submission(submission)
    except ValidationError as e:
        logger.info("Rejected session input: %s", e)
        collab.form_view.notify(str(e))
        _close_form(state, collab)
        return None

    session = create_session(
        data.kind,
        state.pending_location,
        data.distance_km,
        data.duration_min,
        data.value,
    )
    state.sessions.append(session)
    logger.info("Recorded %s (%s)", session.label, session.id)

    if state.map_ready:
        render_marker(session, collab.map_view)
    render_list_entry(session, collab.list_view)
    collab.list_view.set_reset_visible(True)

    try:
        collab.store.save(state.sessions)
    except PersistenceError as e:
        collab.form_view.notify(NOT_SAVED_MESSAGE.format(error=e))

    _close_form(state, collab)
    return session


def on_list_entry_activated(state: AppState, collab: Collaborators, session_id: str) -> None:
    """Center the map on the session with the given id.

    Unknown ids and an uninitialized map are ignored.
    """
    session = find_session(state.sessions, session_id)
    if session is None:
        logger.debug("No session with id %s", session_id)
        return
    if not state.map_ready:
        logger.debug("Map not ready, cannot move to session %s", session_id)
        return
    collab.map_view.set_view(session.location, collab.zoom, animate=True)


def on_reset_requested(state: AppState, collab: Collaborators) -> None:
    """Delete all stored sessions and restart the application."""
    collab.store.reset()
    logger.info("Reset %d sessions", len(state.sessions))
    collab.restart()


def create_dispatcher(state: AppState, collab: Collaborators) -> EventDispatcher:
    """Register the default handlers against their events.

    Args:
        state: Application state shared by all handlers.
        collab: Collaborators shared by all handlers.

    Returns:
        Dispatcher ready to receive events.
    """
    dispatcher = EventDispatcher()
    dispatcher.register(Event.STARTUP, lambda: on_startup(state, collab, dispatcher))
    dispatcher.register(
        Event.LOCATION_PICKED, lambda location: on_location_picked(state, collab, location)
    )
    dispatcher.register(
        Event.FORM_SUBMITTED, lambda submission: on_form_submitted(state, collab, submission)
    )
    dispatcher.register(
        Event.VARIANT_TOGGLED, lambda kind=None: on_variant_toggled(state, collab, kind)
    )
    dispatcher.register(
        Event.LIST_ENTRY_ACTIVATED,
        lambda session_id: on_list_entry_activated(state, collab, session_id),
    )
    dispatcher.register(Event.RESET_REQUESTED, lambda: on_reset_requested(state, collab))
    return dispatcher
