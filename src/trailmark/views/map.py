"""Map view for trailmark.

Keeps a headless map canvas that the controller renders markers into, and
turns it into a stand-alone interactive HTML page using Leaflet.js.
"""

from __future__ import annotations

import functools
import http.server
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from trailmark.models.session import Location

if TYPE_CHECKING:
    from pathlib import Path

    from trailmark.views.sessions import ListEntry

logger = logging.getLogger("trailmark.map")

DEFAULT_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"

ClickHandler = Callable[[Location], None]


@dataclass
class Marker:
    """A marker placed on the map."""

    location: Location
    popup: str
    popup_class: str = ""
    keep_open: bool = False
    session_id: str | None = None


@dataclass
class MapCanvas:
    """Headless map widget.

    Tracks the current view and the markers placed on it. ``click`` emulates
    a user click and notifies the registered handlers.
    """

    center: Location | None = None
    zoom: int = 13
    animated: bool = False
    markers: list[Marker] = field(default_factory=list)
    click_handlers: list[ClickHandler] = field(default_factory=list)

    def set_view(self, location: Location, zoom: int, animate: bool = False) -> None:
        self.center = Location(*location)
        self.zoom = zoom
        self.animated = animate

    def add_marker(
        self,
        location: Location,
        popup: str,
        popup_class: str = "",
        keep_open: bool = False,
        session_id: str | None = None,
    ) -> Marker:
        marker = Marker(Location(*location), popup, popup_class, keep_open, session_id)
        self.markers.append(marker)
        return marker

    def on_click(self, handler: ClickHandler) -> None:
        self.click_handlers.append(handler)

    def click(self, location: Location) -> None:
        """Emulate a user click at a location."""
        for handler in self.click_handlers:
            handler(Location(*location))


def generate_map_html(
    canvas: MapCanvas,
    entries: list[ListEntry] | None = None,
    tile_url: str = DEFAULT_TILE_URL,
    title: str = "trailmark",
) -> str:
    """Generate a stand-alone HTML page of the map and session list.

    Clicking a list entry pans the map to the matching marker.

    Args:
        canvas: Map canvas to render.
        entries: Rendered list entries, top to bottom.
        tile_url: Tile layer URL template.
        title: Page title.

    Returns:
        HTML content as string.
    """
    if entries is None:
        entries = []

    center: list[float] = list(canvas.center) if canvas.center else [0.0, 0.0]
    zoom = canvas.zoom if canvas.center else 2

    markers_json: list[dict[str, Any]] = [
        {
            "coords": [m.location.latitude, m.location.longitude],
            "popup": m.popup,
            "className": m.popup_class,
            "keepOpen": m.keep_open,
            "id": m.session_id,
        }
        for m in canvas.markers
    ]
    entries_html = "\n".join(entry.html for entry in entries)

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">
    <style>
        body {{ margin: 0; padding: 0; display: flex; height: 100vh; font-family: Arial, Helvetica, sans-serif; }}
        .sidebar {{ flex-basis: 380px; overflow-y: auto; padding: 16px; background: #2d3439; color: #ececec; }}
        .workouts {{ list-style: none; padding: 0; margin: 0; }}
        .workout {{
            background: #42484d;
            border-radius: 5px;
            padding: 12px 16px;
            margin-bottom: 12px;
            cursor: pointer;
            display: grid;
            grid-template-columns: 1fr 1fr 1fr 1fr;
            gap: 4px 12px;
        }}
        .workout--running {{ border-left: 5px solid #00c46a; }}
        .workout--cycling {{ border-left: 5px solid #ffb545; }}
        .workout__title {{ font-size: 16px; grid-column: 1 / -1; margin: 0 0 6px; }}
        .workout__details {{ display: flex; align-items: baseline; }}
        .workout__icon {{ font-size: 16px; margin-right: 3px; }}
        .workout__value {{ font-size: 14px; margin-right: 3px; }}
        .workout__unit {{ font-size: 11px; color: #aaa; text-transform: uppercase; }}
        .empty {{ color: #aaa; }}
        #map {{ flex: 1; height: 100%; }}
        .running-popup .leaflet-popup-content-wrapper {{ border-left: 5px solid #00c46a; }}
        .cycling-popup .leaflet-popup-content-wrapper {{ border-left: 5px solid #ffb545; }}
    </style>
</head>
<body>
    <div class="sidebar">
        <ul class="workouts">
{entries_html or '<li class="empty">No sessions recorded yet.</li>'}
        </ul>
    </div>
    <div id="map"></div>
    <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
    <script>
        var mapZoom = {zoom};
        var map = L.map('map').setView({json.dumps(center)}, mapZoom);

        L.tileLayer({json.dumps(tile_url)}, {{
            attribution: '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
        }}).addTo(map);

        var markers = {json.dumps(markers_json, ensure_ascii=False)};
        var markersById = {{}};

        markers.forEach(function(m) {{
            var marker = L.marker(m.coords).addTo(map);
            marker.bindPopup(L.popup({{
                autoClose: !m.keepOpen,
                closeOnClick: !m.keepOpen,
                className: m.className
            }})).setPopupContent(m.popup);
            if (m.keepOpen) {{
                marker.openPopup();
            }}
            if (m.id) {{
                markersById[m.id] = m;
            }}
        }});

        document.querySelector('.workouts').addEventListener('click', function(e) {{
            var el = e.target.closest('.workout');
            if (!el) return;
            var m = markersById[el.dataset.id];
            if (!m) return;
            map.setView(m.coords, mapZoom, {{ animate: true, pan: {{ duration: 1 }} }});
        }});
    </script>
</body>
</html>"""


class _QuietHandler(http.server.SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def make_map_server(
    html_path: Path,
    port: int = 8080,
    host: str = "127.0.0.1",
) -> tuple[http.server.ThreadingHTTPServer, str]:
    """Bind an HTTP server for the directory holding a map page.

    Args:
        html_path: Path to the HTML file.
        port: Server port (0 picks a free one).
        host: Server host.

    Returns:
        The bound server and the URL of the page on it.
    """
    handler = functools.partial(_QuietHandler, directory=str(html_path.parent))
    server = http.server.ThreadingHTTPServer((host, port), handler)
    bound_port = server.server_address[1]
    return server, f"http://{host}:{bound_port}/{html_path.name}"


def serve_map(
    html_path: Path,
    port: int = 8080,
    host: str = "127.0.0.1",
) -> None:
    """Serve a map page until interrupted."""
    server, url = make_map_server(html_path, port=port, host=host)
    logger.info("Serving map at %s", url)
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Map server stopped")
