"""Application assembly.

Builds the state, the headless widgets and the dispatcher from a config,
and supports a full restart that discards everything in memory.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from trailmark.config import ensure_data_dir
from trailmark.lib.geolocation import FixedLocationSensor, IpLocationSensor
from trailmark.lib.kvstore import FileKeyValueStore
from trailmark.models.store import SessionStore
from trailmark.services.controller import (
    AppState,
    Collaborators,
    Event,
    EventDispatcher,
    create_dispatcher,
)
from trailmark.views.form import FormPanel
from trailmark.views.map import MapCanvas, generate_map_html
from trailmark.views.sessions import SessionListView

if TYPE_CHECKING:
    from trailmark.config import Config
    from trailmark.lib.geolocation import LocationSensor
    from trailmark.lib.kvstore import KeyValueStore

logger = logging.getLogger("trailmark.app")


def build_sensor(config: Config) -> LocationSensor:
    """Choose the location sensor for a config.

    A configured position wins over IP geolocation. With neither, the sensor
    always reports the position as unavailable.
    """
    fixed = config.map.fixed_location
    if fixed is not None or not config.map.geolocation:
        return FixedLocationSensor(fixed)
    return IpLocationSensor(config.map.geolocation_url, timeout=config.map.timeout)


class Application:
    """A running trailmark instance."""

    def __init__(
        self,
        config: Config,
        substrate: KeyValueStore | None = None,
        sensor: LocationSensor | None = None,
    ) -> None:
        """Initialize the application.

        Args:
            config: Application configuration.
            substrate: Key-value storage (defaults to files in the data directory).
            sensor: Location sensor (defaults to one chosen from the config).
        """
        self.config = config
        self.substrate = substrate or FileKeyValueStore(ensure_data_dir(config))
        self.sensor = sensor or build_sensor(config)
        self.restarts = 0
        self._build()

    def _build(self) -> None:
        self.state = AppState()
        self.map_view = MapCanvas(zoom=self.config.map.zoom)
        self.form_view = FormPanel()
        self.list_view = SessionListView()
        self.store = SessionStore(self.substrate, key=self.config.storage.key)
        self.collaborators = Collaborators(
            map_view=self.map_view,
            form_view=self.form_view,
            list_view=self.list_view,
            store=self.store,
            sensor=self.sensor,
            restart=self.restart,
            zoom=self.config.map.zoom,
            form_transition_delay=self.config.form.transition_delay,
        )
        self.dispatcher: EventDispatcher = create_dispatcher(self.state, self.collaborators)

    def start(self) -> None:
        self.dispatcher.emit(Event.STARTUP)

    def emit(self, event: Event | str, *args: object) -> None:
        self.dispatcher.emit(event, *args)

    def restart(self) -> None:
        """Discard all in-memory and rendered state and start again."""
        self.restarts += 1
        logger.debug("Restarting application (restart #%d)", self.restarts)
        self._build()
        self.start()

    def render_html(self) -> str:
        """Render the current map and session list as an HTML page."""
        return generate_map_html(
            self.map_view,
            self.list_view.entries,
            tile_url=self.config.map.tile_url,
        )
