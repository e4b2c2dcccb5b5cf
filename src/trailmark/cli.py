"""Command-line interface for trailmark.

Provides CLI commands for recording, listing, locating and resetting
sessions, and for rendering them on an interactive map.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from trailmark import __version__
from trailmark.config import DEFAULT_CONFIG_PATH, load_config
from trailmark.lib.logging import setup_logging
from trailmark.models.session import SessionKind
from trailmark.models.store import encode_session
from trailmark.services.controller import Event
from trailmark.services.forms import FormSubmission
from trailmark.views.sessions import format_session_line

if TYPE_CHECKING:
    from trailmark.config import Config
    from trailmark.services.app import Application


class JSONOutput:
    """Helper for JSON output formatting."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Set a value in the output."""
        self._data[key] = value

    def update(self, data: dict[str, Any]) -> None:
        """Update with multiple values."""
        self._data.update(data)

    def output(self) -> None:
        """Print JSON output if enabled."""
        if self.enabled:
            click.echo(json.dumps(self._data, indent=2, default=str, ensure_ascii=False))


# Custom context class to hold shared state
class Context:
    """CLI context holding shared configuration and state."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: int = 0
        self.quiet: bool = False
        self.json_output: bool = False
        self.output: JSONOutput = JSONOutput()

    def log(self, message: str, level: int = 0) -> None:
        """Log a message if verbosity allows.

        Args:
            message: Message to log.
            level: Required verbosity level (0=normal, 1=-v, 2=-vv).
        """
        if self.json_output:
            return
        if self.quiet and level == 0:
            return
        if level <= self.verbose or level == 0:
            click.echo(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        if self.json_output:
            self.output.set("error", message)
            self.output.set("status", "error")
        else:
            click.echo(f"Error: {message}", err=True)

    def fail(self, message: str, code: int = 1) -> None:
        """Report an error and exit."""
        self.error(message)
        if self.json_output:
            self.output.output()
        sys.exit(code)

    def start_app(self) -> Application:
        """Build the application and run its startup sequence."""
        from trailmark.services.app import Application

        if self.config is None:
            self.fail("Configuration not loaded")
        app = Application(self.config)
        app.start()
        if not app.state.map_ready:
            self.log("Map unavailable: current position could not be determined", level=1)
        return app


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH})",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Data directory path (default: ./data)",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-error output",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format",
)
@click.version_option(version=__version__, prog_name="trailmark")
@pass_context
def main(
    ctx: Context,
    config_path: Path | None,
    data_dir: Path | None,
    verbose: int,
    quiet: bool,
    json_output: bool,
) -> None:
    """Record running and cycling sessions on a map.

    Pick a location, enter distance and duration, and keep a log of your
    sessions that you can browse as an interactive map.
    """
    ctx.verbose = verbose
    ctx.quiet = quiet
    ctx.json_output = json_output
    ctx.output = JSONOutput(json_output)

    try:
        ctx.config = load_config(config_path)
    except (OSError, ValueError) as e:
        ctx.fail(f"Invalid configuration: {e}", code=2)

    # Override data directory if specified
    if data_dir is not None:
        ctx.config.data.directory = data_dir

    console_level = logging.DEBUG if verbose >= 2 else logging.INFO if verbose else logging.WARNING
    setup_logging(ctx.config, console_level=console_level, quiet=quiet or json_output)


@main.command()
@click.option("--lat", "latitude", type=float, required=True, help="Latitude of the session")
@click.option("--lng", "longitude", type=float, required=True, help="Longitude of the session")
@click.option(
    "--type",
    "kind",
    type=click.Choice([k.value for k in SessionKind]),
    default=SessionKind.RUNNING.value,
    show_default=True,
    help="Session type",
)
@click.option("--distance", required=True, help="Distance in km")
@click.option("--duration", required=True, help="Duration in minutes")
@click.option("--cadence", default="", help="Cadence in steps/min (running)")
@click.option("--elevation", default="", help="Elevation gain in m (cycling)")
@pass_context
def add(
    ctx: Context,
    latitude: float,
    longitude: float,
    kind: str,
    distance: str,
    duration: str,
    cadence: str,
    elevation: str,
) -> None:
    """Record a new session at a location."""
    app = ctx.start_app()
    count = len(app.state.sessions)

    app.emit(Event.LOCATION_PICKED, (latitude, longitude))
    app.emit(Event.VARIANT_TOGGLED, SessionKind(kind))
    app.emit(
        Event.FORM_SUBMITTED,
        FormSubmission(
            kind=kind,
            distance=distance,
            duration=duration,
            cadence=cadence,
            elevation=elevation,
        ),
    )

    notices = app.form_view.notices
    if len(app.state.sessions) == count:
        ctx.fail(notices[-1] if notices else "Session was not recorded", code=2)

    session = app.state.sessions[-1]
    for notice in notices:
        ctx.error(notice)

    if ctx.json_output:
        ctx.output.update({
            "status": "success" if not notices else "unsaved",
            "session": encode_session(session),
        })
        ctx.output.output()
    else:
        ctx.log(f"Recorded {format_session_line(session)}")

    if notices:
        sys.exit(1)


@main.command(name="list")
@pass_context
def list_cmd(ctx: Context) -> None:
    """List recorded sessions, newest first."""
    app = ctx.start_app()
    sessions = list(reversed(app.state.sessions))

    if ctx.json_output:
        click.echo(json.dumps([encode_session(s) for s in sessions], indent=2, ensure_ascii=False))
        return

    if not sessions:
        ctx.log("No sessions recorded yet.")
        return
    for session in sessions:
        ctx.log(format_session_line(session))


@main.command()
@click.argument("session_id")
@pass_context
def show(ctx: Context, session_id: str) -> None:
    """Center the map on a session."""
    app = ctx.start_app()
    app.emit(Event.LIST_ENTRY_ACTIVATED, session_id)

    center = app.map_view.center
    moved = app.map_view.animated
    if ctx.json_output:
        ctx.output.update({
            "status": "success" if moved else "unchanged",
            "center": list(center) if center else None,
            "zoom": app.map_view.zoom,
        })
        ctx.output.output()
    elif moved:
        ctx.log(f"Map centered on {center.latitude:.5f}, {center.longitude:.5f}")
    else:
        ctx.log(f"Map unchanged (no session {session_id} on the map)")


@main.command(name="map")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output HTML file (default: stdout or ./trailmark.html)",
)
@click.option(
    "--serve",
    is_flag=True,
    help="Start local HTTP server to view map",
)
@click.option(
    "--port",
    default=8080,
    help="Server port (default: 8080)",
)
@pass_context
def map_cmd(ctx: Context, output: Path | None, serve: bool, port: int) -> None:
    """Generate interactive map of recorded sessions."""
    from trailmark.views.map import serve_map

    app = ctx.start_app()
    html = app.render_html()

    if serve:
        output_path = output or Path("./trailmark.html")
        output_path.write_text(html, encoding="utf-8")
        ctx.log(f"Map saved to {output_path}")
        ctx.log(f"Starting server at http://127.0.0.1:{port}")
        ctx.log("Press Ctrl+C to stop")
        serve_map(output_path, port=port)
    elif output:
        output.write_text(html, encoding="utf-8")
        ctx.log(f"Map saved to {output}")
    else:
        click.echo(html)


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@pass_context
def reset(ctx: Context, yes: bool) -> None:
    """Delete all recorded sessions."""
    app = ctx.start_app()
    count = len(app.state.sessions)

    if not yes and not click.confirm(f"Delete all {count} sessions?"):
        ctx.log("Aborted")
        return

    app.emit(Event.RESET_REQUESTED)

    if ctx.json_output:
        ctx.output.update({"status": "success", "deleted": count})
        ctx.output.output()
    else:
        ctx.log(f"Deleted {count} sessions")


if __name__ == "__main__":
    main()
