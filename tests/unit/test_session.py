"""Unit tests for the session model."""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from trailmark.models.session import (
    Location,
    SessionKind,
    TimedCadenceSession,
    TimedElevationSession,
    create_session,
    create_timed_cadence_session,
    create_timed_elevation_session,
    describe,
    find_session,
)


class TestDerivedMetrics:
    """Tests for pace and speed derivation."""

    @pytest.mark.parametrize(
        ("distance", "duration"),
        [(5.0, 25.0), (0.3, 7.0), (42.195, 180.5), (1e-3, 1e-2)],
    )
    def test_pace_is_duration_over_distance(self, distance: float, duration: float) -> None:
        """Pace equals duration / distance exactly."""
        session = create_timed_cadence_session(Location(0.0, 0.0), distance, duration, 170)
        assert session.pace_min_per_km == duration / distance

    @pytest.mark.parametrize(
        ("distance", "duration"),
        [(20.0, 60.0), (7.3, 19.0), (100.0, 241.7)],
    )
    def test_speed_is_distance_per_hour(self, distance: float, duration: float) -> None:
        """Speed equals distance / (duration / 60) exactly."""
        session = create_timed_elevation_session(Location(0.0, 0.0), distance, duration, 120)
        assert session.speed_km_per_h == distance / (duration / 60)

    def test_known_values(self) -> None:
        """Check a worked example for each variant."""
        run = create_timed_cadence_session(Location(10.0, 20.0), 5, 25, 150)
        ride = create_timed_elevation_session(Location(10.0, 20.0), 30, 90, 300)

        assert run.pace_min_per_km == 5.0
        assert ride.speed_km_per_h == 20.0


class TestLabel:
    """Tests for the session label."""

    def test_running_label(self) -> None:
        """Label combines capitalized type, month name and day."""
        assert describe(SessionKind.RUNNING, datetime(2025, 4, 14, 9, 0)) == "Running on April 14"

    def test_cycling_label(self) -> None:
        """Cycling labels use the same format."""
        assert describe(SessionKind.CYCLING, datetime(2024, 12, 1)) == "Cycling on December 1"

    def test_label_set_at_construction(self) -> None:
        """The record carries the label for its creation date."""
        session = create_timed_elevation_session(
            Location(1.0, 2.0), 10, 30, 0, created_at=datetime(2025, 1, 31, 23, 59)
        )
        assert session.label == "Cycling on January 31"


class TestRecords:
    """Tests for record construction and identity."""

    def test_variants_have_distinct_kinds(self) -> None:
        """Each variant is tagged with its kind."""
        assert TimedCadenceSession.kind is SessionKind.RUNNING
        assert TimedElevationSession.kind is SessionKind.CYCLING

    def test_records_are_immutable(self) -> None:
        """Derived fields cannot be reassigned."""
        session = create_timed_cadence_session(Location(1.0, 2.0), 5, 25, 150)
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.pace_min_per_km = 1.0  # type: ignore[misc]

    def test_ids_are_unique(self) -> None:
        """Generated ids are not reused."""
        ids = {
            create_timed_cadence_session(Location(1.0, 2.0), 5, 25, 150).id for _ in range(200)
        }
        assert len(ids) == 200

    def test_location_is_normalized(self) -> None:
        """Plain tuples become Location values."""
        session = create_timed_cadence_session((1.5, -2.5), 5, 25, 150)  # type: ignore[arg-type]
        assert session.location == Location(1.5, -2.5)
        assert session.location.latitude == 1.5

    def test_create_session_dispatches_on_kind(self) -> None:
        """create_session builds the variant matching the kind."""
        run = create_session(SessionKind.RUNNING, Location(0.0, 0.0), 5, 25, 160)
        ride = create_session(SessionKind.CYCLING, Location(0.0, 0.0), 20, 60, -15)

        assert isinstance(run, TimedCadenceSession)
        assert run.cadence_spm == 160
        assert isinstance(ride, TimedElevationSession)
        assert ride.elevation_gain_m == -15

    def test_find_session_by_id(self, sample_sessions) -> None:
        """Lookup matches on id only."""
        assert find_session(sample_sessions, "f6e5d4c3b2") is sample_sessions[1]
        assert find_session(sample_sessions, "missing") is None

    def test_icons(self) -> None:
        """Each kind has its own glyph."""
        assert SessionKind.RUNNING.icon != SessionKind.CYCLING.icon
