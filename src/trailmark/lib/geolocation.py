"""Current-location sensors.

A sensor answers a single "where am I" query or raises LocationUnavailable.
"""

from __future__ import annotations

import logging
from typing import Protocol

import requests

from trailmark.models.session import Location

logger = logging.getLogger("trailmark.geolocation")

DEFAULT_GEOLOCATION_URL = "https://ipapi.co/json/"
DEFAULT_TIMEOUT = 5.0


class LocationUnavailable(RuntimeError):
    """Raised when the current position cannot be determined."""


class LocationSensor(Protocol):
    """One-shot current position query."""

    def current_position(self) -> Location: ...


class FixedLocationSensor:
    """Sensor reporting a configured position."""

    def __init__(self, location: Location | None) -> None:
        self.location = location

    def current_position(self) -> Location:
        if self.location is None:
            raise LocationUnavailable("No position configured")
        return self.location


class IpLocationSensor:
    """Sensor resolving the approximate position of this host's IP address."""

    def __init__(
        self,
        url: str = DEFAULT_GEOLOCATION_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the sensor.

        Args:
            url: Geolocation service endpoint returning JSON.
            timeout: Request timeout in seconds.
            session: Optional requests session to reuse.
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def current_position(self) -> Location:
        """Query the geolocation service.

        Accepts either ``latitude``/``longitude`` or ``lat``/``lon`` keys.

        Returns:
            Current position.

        Raises:
            LocationUnavailable: On network errors, HTTP errors, or a payload
                without usable coordinates.
        """
        logger.debug("Requesting current position from %s", self.url)
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise LocationUnavailable(f"Geolocation request failed: {e}") from e

        if not isinstance(data, dict):
            raise LocationUnavailable("Geolocation response is not an object")

        latitude = data.get("latitude", data.get("lat"))
        longitude = data.get("longitude", data.get("lon"))
        try:
            location = Location(float(latitude), float(longitude))
        except (TypeError, ValueError) as e:
            raise LocationUnavailable(f"Geolocation response has no coordinates: {data}") from e

        logger.debug("Current position: %.5f, %.5f", location.latitude, location.longitude)
        return location
