"""Unit tests for the session store and key-value substrates."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from trailmark.lib.kvstore import FileKeyValueStore, MemoryKeyValueStore
from trailmark.models.session import (
    Location,
    TimedCadenceSession,
    TimedElevationSession,
    create_timed_cadence_session,
)
from trailmark.models.store import (
    PersistenceError,
    ReconstructionError,
    SessionStore,
    decode_session,
    encode_session,
)


class FailingStore(MemoryKeyValueStore):
    """Substrate whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


class TestRoundTrip:
    """Tests for save followed by load."""

    def test_round_trip_preserves_fields(self, sample_sessions) -> None:
        """Loaded sessions equal the saved ones field for field."""
        store = SessionStore(MemoryKeyValueStore())
        store.save(sample_sessions)

        assert store.load() == sample_sessions

    def test_round_trip_restores_variants(self, sample_sessions) -> None:
        """Each record comes back as its own variant without foreign fields."""
        store = SessionStore(MemoryKeyValueStore())
        store.save(sample_sessions)
        run, ride = store.load()

        assert isinstance(run, TimedCadenceSession)
        assert isinstance(ride, TimedElevationSession)
        assert not hasattr(run, "elevation_gain_m")
        assert not hasattr(ride, "cadence_spm")
        assert run.location == Location(51.5074, -0.1278)

    def test_round_trip_through_files(self, temp_data_dir: Path, sample_sessions) -> None:
        """A file-backed store survives a new store instance."""
        SessionStore(FileKeyValueStore(temp_data_dir)).save(sample_sessions)

        loaded = SessionStore(FileKeyValueStore(temp_data_dir)).load()

        assert loaded == sample_sessions
        assert (temp_data_dir / "workouts.json").exists()

    def test_empty_list(self) -> None:
        """An empty list round-trips to an empty list."""
        store = SessionStore(MemoryKeyValueStore())
        store.save([])
        assert store.load() == []

    def test_save_overwrites(self, sample_sessions) -> None:
        """Each save replaces the whole stored list."""
        substrate = MemoryKeyValueStore()
        store = SessionStore(substrate)
        store.save(sample_sessions)
        store.save(sample_sessions[:1])

        assert len(json.loads(substrate.items["workouts"])) == 1


class TestEncoding:
    """Tests for the stored field bags."""

    def test_encoded_fields(self, sample_sessions) -> None:
        """Bags carry the tag, shared fields and derived values."""
        bag = encode_session(sample_sessions[0])

        assert bag["type"] == "running"
        assert bag["id"] == "a1b2c3d4e5"
        assert bag["location"] == [51.5074, -0.1278]
        assert bag["label"] == "Running on April 14"
        assert bag["pace_min_per_km"] == 26.0 / 5.2
        assert "elevation_gain_m" not in bag

    def test_decode_ignores_field_order(self, sample_sessions) -> None:
        """Field order in the stored bag is irrelevant."""
        bag = encode_session(sample_sessions[1])
        reordered = dict(reversed(list(bag.items())))

        assert decode_session(reordered) == sample_sessions[1]

    def test_stored_derived_values_are_not_recomputed(self) -> None:
        """Label and pace come from storage even if they differ from a recomputation."""
        session = create_timed_cadence_session(Location(0.0, 0.0), 5, 25, 150)
        bag = encode_session(session)
        bag["label"] = "Morning run"
        bag["pace_min_per_km"] = 4.9

        decoded = decode_session(bag)

        assert decoded.label == "Morning run"
        assert decoded.pace_min_per_km == 4.9

    def test_unknown_tag_is_rejected(self, sample_sessions) -> None:
        """Unknown tags raise instead of guessing the variant."""
        bag = encode_session(sample_sessions[0])
        bag["type"] = "swimming"

        with pytest.raises(ReconstructionError):
            decode_session(bag)

    def test_missing_tag_is_rejected(self, sample_sessions) -> None:
        """A bag without a tag is not shape-sniffed."""
        bag = encode_session(sample_sessions[0])
        del bag["type"]

        with pytest.raises(ReconstructionError):
            decode_session(bag)

    @pytest.mark.parametrize(
        "mutation",
        [
            lambda b: b.pop("distance_km"),
            lambda b: b.update(cadence_spm="fast"),
            lambda b: b.update(location=[1.0]),
            lambda b: b.update(created_at=12),
            lambda b: b.update(distance_km=True),
        ],
    )
    def test_malformed_fields_are_rejected(self, sample_sessions, mutation) -> None:
        """Missing or mistyped fields raise ReconstructionError."""
        bag = encode_session(sample_sessions[0])
        mutation(bag)

        with pytest.raises(ReconstructionError):
            decode_session(bag)


class TestLoadFailures:
    """Tests for load on absent or damaged data."""

    def test_absent_key(self) -> None:
        """No stored data means no sessions."""
        assert SessionStore(MemoryKeyValueStore()).load() == []

    @pytest.mark.parametrize(
        "blob",
        [
            "not json",
            "{\"type\": \"running\"}",
            "null",
            "[{\"type\": \"running\"}]",
            "[42]",
        ],
    )
    def test_damaged_data_loads_empty(self, blob: str) -> None:
        """Unparsable or malformed data is discarded."""
        store = SessionStore(MemoryKeyValueStore({"workouts": blob}))
        assert store.load() == []

    def test_one_bad_record_discards_all(self, sample_sessions) -> None:
        """A single malformed record discards the whole stored list."""
        bags = [encode_session(s) for s in sample_sessions]
        bags[1]["type"] = "rowing"
        store = SessionStore(MemoryKeyValueStore({"workouts": json.dumps(bags)}))

        assert store.load() == []


class TestSaveFailures:
    """Tests for write failures."""

    def test_substrate_error_raises_persistence_error(self, sample_sessions) -> None:
        """Substrate errors surface as PersistenceError."""
        store = SessionStore(FailingStore())

        with pytest.raises(PersistenceError):
            store.save(sample_sessions)

    def test_failed_file_write_keeps_previous_value(
        self, temp_data_dir: Path, sample_sessions, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing write leaves the last saved list readable."""
        substrate = FileKeyValueStore(temp_data_dir)
        store = SessionStore(substrate)
        store.save(sample_sessions[:1])

        def broken_write(self: Path, *args: object, **kwargs: object) -> int:
            raise OSError("disk full")

        monkeypatch.setattr(Path, "write_text", broken_write)
        with pytest.raises(PersistenceError):
            store.save(sample_sessions)
        monkeypatch.undo()

        assert store.load() == sample_sessions[:1]

    def test_failed_file_write_removes_temp_file(
        self, temp_data_dir: Path, sample_sessions, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A write that fails after the temp file exists cleans it up."""
        substrate = FileKeyValueStore(temp_data_dir)
        store = SessionStore(substrate)

        def broken_replace(self: Path, target: object) -> Path:
            raise OSError("device busy")

        monkeypatch.setattr(Path, "replace", broken_replace)
        with pytest.raises(PersistenceError):
            store.save(sample_sessions)
        monkeypatch.undo()

        assert list(temp_data_dir.glob("*.tmp")) == []
        assert store.load() == []


class TestReset:
    """Tests for reset."""

    def test_reset_removes_key(self, sample_sessions) -> None:
        """Reset deletes the stored list."""
        substrate = MemoryKeyValueStore()
        store = SessionStore(substrate)
        store.save(sample_sessions)

        store.reset()

        assert substrate.get("workouts") is None
        assert store.load() == []

    def test_reset_is_idempotent(self, temp_data_dir: Path) -> None:
        """Resetting an empty store is a no-op."""
        store = SessionStore(FileKeyValueStore(temp_data_dir))
        store.reset()
        store.reset()
        assert store.load() == []

    def test_custom_key(self, sample_sessions) -> None:
        """The store only touches its own key."""
        substrate = MemoryKeyValueStore({"other": "keep"})
        store = SessionStore(substrate, key="sessions")
        store.save(sample_sessions)
        store.reset()

        assert substrate.items == {"other": "keep"}

    def test_reset_with_unusable_key_completes(self, temp_data_dir: Path) -> None:
        """Substrate errors during reset are logged, not raised."""
        store = SessionStore(FileKeyValueStore(temp_data_dir), key="my workouts")

        store.reset()

        assert store.load() == []


class TestFileKeyValueStore:
    """Tests for the file-backed substrate."""

    def test_get_missing(self, temp_data_dir: Path) -> None:
        """Missing keys read as None."""
        assert FileKeyValueStore(temp_data_dir).get("nothing") is None

    def test_set_creates_directory(self, tmp_path: Path) -> None:
        """The directory is created on first write."""
        substrate = FileKeyValueStore(tmp_path / "nested" / "dir")
        substrate.set("k", "v")
        assert substrate.get("k") == "v"

    @pytest.mark.parametrize("key", ["../escape", "a/b", ""])
    def test_rejects_unsafe_keys(self, temp_data_dir: Path, key: str) -> None:
        """Keys cannot point outside the directory."""
        with pytest.raises(ValueError):
            FileKeyValueStore(temp_data_dir).path_for(key)
