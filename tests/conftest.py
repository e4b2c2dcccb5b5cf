"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from trailmark.models.session import (
    Location,
    SessionRecord,
    create_timed_cadence_session,
    create_timed_elevation_session,
)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers installed by the CLI so later tests don't log to closed streams."""
    yield
    for name in ("trailmark", "urllib3"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Empty data directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def sample_sessions() -> list[SessionRecord]:
    """One running and one cycling session."""
    return [
        create_timed_cadence_session(
            Location(51.5074, -0.1278),
            5.2,
            26.0,
            172,
            created_at=datetime(2025, 4, 14, 7, 30, 15, 123456),
            session_id="a1b2c3d4e5",
        ),
        create_timed_elevation_session(
            Location(48.8566, 2.3522),
            42.0,
            95.0,
            -50.0,
            created_at=datetime(2025, 12, 1, 18, 5),
            session_id="f6e5d4c3b2",
        ),
    ]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def cli_data_dir(tmp_path: Path) -> Path:
    """Data directory used by CLI tests."""
    return tmp_path / "data"


@pytest.fixture
def cli_env(tmp_path: Path, cli_data_dir: Path) -> dict[str, str]:
    """Environment isolating the CLI from user config and the network."""
    return {
        "TRAILMARK_CONFIG": str(tmp_path / "missing-config.toml"),
        "TRAILMARK_DATA_DIR": str(cli_data_dir),
        "TRAILMARK_LATITUDE": "10.0",
        "TRAILMARK_LONGITUDE": "20.0",
    }
