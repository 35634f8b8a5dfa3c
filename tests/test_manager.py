"""Unit tests for quicknotes.manager — note collection and persistence."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest
from prometheus_client import REGISTRY

from quicknotes.backends import JsonFileBackend, MemoryBackend
from quicknotes.manager import DEFAULT_STORAGE_KEY, NotesManager, PersistenceResult
from quicknotes.models import Note, encode_notes

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FailingBackend(MemoryBackend):
    """Backend whose writes always fail."""

    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


class BrokenBackend(MemoryBackend):
    """Backend whose reads always fail."""

    def get(self, key: str):
        raise ConnectionError("unreachable")


@pytest.fixture()
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture()
def manager(backend: MemoryBackend) -> NotesManager:
    return NotesManager(backend)


def _texts(manager: NotesManager) -> list[str]:
    return [n.text for n in manager.notes]


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


class TestLoad:
    def test_missing_key_starts_empty(self, manager: NotesManager) -> None:
        assert manager.notes == []
        assert manager.last_load == PersistenceResult(ok=True, count=0)

    def test_loads_existing_notes(self) -> None:
        notes = [Note(text="one"), Note(text="two")]
        backend = MemoryBackend({DEFAULT_STORAGE_KEY: encode_notes(notes)})
        manager = NotesManager(backend)
        assert manager.notes == notes
        assert manager.last_load.count == 2

    def test_corrupt_data_yields_empty_without_raising(self) -> None:
        backend = MemoryBackend({DEFAULT_STORAGE_KEY: "{garbage"})
        manager = NotesManager(backend)
        assert manager.notes == []
        assert manager.last_load.ok is False
        assert manager.last_load.error

    def test_wrong_shape_yields_empty(self) -> None:
        backend = MemoryBackend({DEFAULT_STORAGE_KEY: json.dumps({"notes": []})})
        assert NotesManager(backend).notes == []

    def test_backend_error_yields_empty(self) -> None:
        manager = NotesManager(BrokenBackend())
        assert manager.notes == []
        assert manager.last_load.ok is False
        assert "unreachable" in manager.last_load.error

    def test_load_again_is_idempotent_on_corrupt_data(self) -> None:
        backend = MemoryBackend({DEFAULT_STORAGE_KEY: "nope"})
        manager = NotesManager(backend)
        assert manager.load().ok is False
        assert manager.load().ok is False
        assert manager.notes == []

    def test_custom_storage_key(self) -> None:
        backend = MemoryBackend()
        NotesManager(backend, storage_key="other").add_note("x")
        assert backend.get("other") is not None
        assert backend.get(DEFAULT_STORAGE_KEY) is None


# ---------------------------------------------------------------------------
# Add
# ---------------------------------------------------------------------------


class TestAddNote:
    def test_add_appends_and_persists(
        self, manager: NotesManager, backend: MemoryBackend
    ) -> None:
        result = manager.add_note("Buy milk")
        assert result.ok is True
        assert result.count == 1
        assert _texts(manager) == ["Buy milk"]
        assert NotesManager(backend).notes == manager.notes

    def test_add_increases_length_by_one(self, manager: NotesManager) -> None:
        for i in range(5):
            prior_ids = {n.id for n in manager.notes}
            manager.add_note(f"note {i}")
            assert len(manager) == i + 1
            assert manager.notes[-1].id not in prior_ids

    def test_empty_text_accepted(self, manager: NotesManager) -> None:
        manager.add_note("")
        assert _texts(manager) == [""]

    def test_uses_clock(self, backend: MemoryBackend) -> None:
        when = datetime(2025, 2, 6, 9, 30, tzinfo=UTC)
        manager = NotesManager(backend, clock=lambda: when)
        manager.add_note("timed")
        assert manager.notes[0].timestamp == when

    def test_duplicate_ids_are_regenerated(self, backend: MemoryBackend) -> None:
        ids = iter(["a", "a", "b"])
        manager = NotesManager(backend, id_factory=lambda: next(ids))
        manager.add_note("first")
        manager.add_note("second")
        assert [n.id for n in manager.notes] == ["a", "b"]

    def test_save_failure_keeps_memory(self) -> None:
        manager = NotesManager(FailingBackend())
        result = manager.add_note("unsaved")
        assert result.ok is False
        assert "disk full" in result.error
        assert _texts(manager) == ["unsaved"]
        assert manager.last_save is result


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDeleteNote:
    def _filled(self, backend: MemoryBackend, count: int) -> NotesManager:
        manager = NotesManager(backend)
        for i in range(count):
            manager.add_note(f"n{i}")
        return manager

    def test_delete_single(self, backend: MemoryBackend) -> None:
        manager = self._filled(backend, 3)
        manager.delete_note({1})
        assert _texts(manager) == ["n0", "n2"]

    def test_delete_multiple_keeps_relative_order(
        self, backend: MemoryBackend
    ) -> None:
        manager = self._filled(backend, 6)
        manager.delete_note({0, 2, 5})
        assert _texts(manager) == ["n1", "n3", "n4"]

    def test_delete_persists(self, backend: MemoryBackend) -> None:
        manager = self._filled(backend, 2)
        result = manager.delete_note({0})
        assert result.ok is True
        assert _texts(NotesManager(backend)) == ["n1"]

    @pytest.mark.parametrize("positions", [{3}, {-1}, {99, -5}])
    def test_out_of_range_is_noop(
        self, backend: MemoryBackend, positions: set[int]
    ) -> None:
        manager = self._filled(backend, 3)
        result = manager.delete_note(positions)
        assert result.ok is True
        assert _texts(manager) == ["n0", "n1", "n2"]

    def test_mixed_valid_and_invalid(self, backend: MemoryBackend) -> None:
        manager = self._filled(backend, 3)
        manager.delete_note({1, 7})
        assert _texts(manager) == ["n0", "n2"]

    def test_delete_from_empty(self, manager: NotesManager) -> None:
        assert manager.delete_note({0}).ok is True
        assert manager.notes == []

    def test_accepts_any_iterable(self, backend: MemoryBackend) -> None:
        manager = self._filled(backend, 3)
        manager.delete_note([2, 2, 0])
        assert _texts(manager) == ["n1"]


# ---------------------------------------------------------------------------
# Read access and subscriptions
# ---------------------------------------------------------------------------


class TestAccess:
    def test_get_by_position(self, manager: NotesManager) -> None:
        manager.add_note("a")
        manager.add_note("b")
        assert manager.get(1).text == "b"

    @pytest.mark.parametrize("position", [-1, 2])
    def test_get_out_of_range(self, manager: NotesManager, position: int) -> None:
        manager.add_note("a")
        manager.add_note("b")
        with pytest.raises(IndexError):
            manager.get(position)

    def test_notes_is_a_snapshot(self, manager: NotesManager) -> None:
        manager.add_note("a")
        manager.notes.clear()
        assert len(manager) == 1


class TestSubscriptions:
    def test_subscriber_sees_each_change(self, manager: NotesManager) -> None:
        seen: list[list[str]] = []
        manager.subscribe(lambda notes: seen.append([n.text for n in notes]))
        manager.add_note("a")
        manager.add_note("b")
        manager.delete_note({0})
        assert seen == [["a"], ["a", "b"], ["b"]]

    def test_unsubscribe(self, manager: NotesManager) -> None:
        seen: list[int] = []
        unsubscribe = manager.subscribe(lambda notes: seen.append(len(notes)))
        manager.add_note("a")
        unsubscribe()
        unsubscribe()
        manager.add_note("b")
        assert seen == [1]

    def test_load_notifies(self, backend: MemoryBackend) -> None:
        manager = NotesManager(backend)
        backend.set(DEFAULT_STORAGE_KEY, encode_notes([Note(text="external")]))
        seen: list[int] = []
        manager.subscribe(lambda notes: seen.append(len(notes)))
        manager.load()
        assert seen == [1]


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


class TestScenario:
    def test_buy_milk_call_mom(self, manager: NotesManager) -> None:
        assert manager.notes == []
        manager.add_note("Buy milk")
        assert _texts(manager) == ["Buy milk"]
        manager.add_note("Call mom")
        assert _texts(manager) == ["Buy milk", "Call mom"]
        manager.delete_note({0})
        assert _texts(manager) == ["Call mom"]

    def test_survives_restart_on_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        first = NotesManager(JsonFileBackend(path))
        first.add_note("Buy milk")
        first.add_note("Call mom")
        second = NotesManager(JsonFileBackend(path))
        assert second.notes == first.notes

    def test_corrupt_file_on_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        path.write_text("{corrupt")
        manager = NotesManager(JsonFileBackend(path))
        assert manager.notes == []
        assert manager.last_load.ok is False
        assert manager.add_note("fresh").ok is True
        assert _texts(NotesManager(JsonFileBackend(path))) == ["fresh"]


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetrics:
    def test_failed_save_is_counted(self) -> None:
        labels = {"operation": "save", "status": "error"}
        before = _sample("quicknotes_persistence_operations_total", labels)
        NotesManager(FailingBackend()).add_note("unsaved")
        after = _sample("quicknotes_persistence_operations_total", labels)
        assert after == before + 1

    def test_failed_load_is_counted(self) -> None:
        labels = {"operation": "load", "status": "error"}
        before = _sample("quicknotes_persistence_operations_total", labels)
        NotesManager(BrokenBackend())
        assert _sample("quicknotes_persistence_operations_total", labels) == before + 1

    def test_add_and_delete_counters(self, manager: NotesManager) -> None:
        added = _sample("quicknotes_notes_added_total")
        deleted = _sample("quicknotes_notes_deleted_total")
        manager.add_note("a")
        manager.add_note("b")
        manager.delete_note({0, 1, 9})
        assert _sample("quicknotes_notes_added_total") == added + 2
        assert _sample("quicknotes_notes_deleted_total") == deleted + 2
        assert _sample("quicknotes_notes_stored") == 0
