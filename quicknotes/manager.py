"""In-memory notes collection with write-through persistence.

The manager owns the ordered list of notes for a session. Every mutation
is followed by a full save of the list to the key-value backend, and
subscribers are notified with a snapshot of the new list. Persistence
failures never raise: they are logged and returned as
:class:`PersistenceResult` values so the caller can decide what to do.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from quicknotes.backends import KeyValueBackend
from quicknotes.metrics import (
    NOTES_ADDED,
    NOTES_DELETED,
    NOTES_STORED,
    PERSISTENCE_OPERATIONS,
)
from quicknotes.models import Note, decode_notes, encode_notes

logger = logging.getLogger("quicknotes.manager")

DEFAULT_STORAGE_KEY = "quickNotes"

Subscriber = Callable[[list[Note]], None]


@dataclass(frozen=True)
class PersistenceResult:
    """Outcome of a load or save against the backend."""

    ok: bool
    count: int
    error: str | None = None


class NotesManager:
    """Owns the ordered note list and keeps the backend in sync."""

    def __init__(
        self,
        backend: KeyValueBackend,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._backend = backend
        self._storage_key = storage_key
        self._clock = clock or (lambda: datetime.now(UTC))
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._notes: list[Note] = []
        self._subscribers: list[Subscriber] = []
        self.last_save: PersistenceResult | None = None
        self.last_load: PersistenceResult = self.load()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def notes(self) -> list[Note]:
        """Snapshot of the notes in display order."""
        return list(self._notes)

    def get(self, position: int) -> Note:
        """Return the note at ``position``. Raises ``IndexError`` if absent."""
        if not 0 <= position < len(self._notes):
            raise IndexError(f"No note at position {position}")
        return self._notes[position]

    def __len__(self) -> int:
        return len(self._notes)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_note(self, text: str) -> PersistenceResult:
        """Append a new note with a fresh id and the current time."""
        note = Note(id=self._new_id(), text=text, timestamp=self._clock())
        self._notes.append(note)
        NOTES_ADDED.inc()
        logger.info("Added note %s (%d total)", note.id, len(self._notes))
        result = self.save()
        self._notify()
        return result

    def delete_note(self, positions: Iterable[int]) -> PersistenceResult:
        """Remove the notes at ``positions``. Out-of-range positions are ignored."""
        targets = {p for p in positions if 0 <= p < len(self._notes)}
        if targets:
            self._notes = [n for i, n in enumerate(self._notes) if i not in targets]
            NOTES_DELETED.inc(len(targets))
            logger.info(
                "Deleted %d note(s) (%d remaining)", len(targets), len(self._notes)
            )
        result = self.save()
        self._notify()
        return result

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> PersistenceResult:
        """Replace the in-memory list with the persisted one.

        A missing key yields an empty list. Any read or decode failure also
        yields an empty list, with ``ok=False``.
        """
        try:
            raw = self._backend.get(self._storage_key)
            notes = decode_notes(raw) if raw is not None else []
        except Exception as exc:
            logger.warning("Failed to load notes: %s — starting empty", exc)
            self._notes = []
            result = PersistenceResult(ok=False, count=0, error=str(exc))
        else:
            self._notes = notes
            logger.info("Loaded %d notes from key %r", len(notes), self._storage_key)
            result = PersistenceResult(ok=True, count=len(notes))

        PERSISTENCE_OPERATIONS.labels(
            operation="load", status="ok" if result.ok else "error"
        ).inc()
        self._notify()
        return result

    def save(self) -> PersistenceResult:
        """Write the full list under the storage key.

        On failure the write is skipped and memory is left as is.
        """
        try:
            self._backend.set(self._storage_key, encode_notes(self._notes))
        except Exception as exc:
            logger.warning("Failed to save notes: %s", exc)
            result = PersistenceResult(
                ok=False, count=len(self._notes), error=str(exc)
            )
        else:
            result = PersistenceResult(ok=True, count=len(self._notes))

        PERSISTENCE_OPERATIONS.labels(
            operation="save", status="ok" if result.ok else "error"
        ).inc()
        self.last_save = result
        return result

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback`` with a snapshot after every change.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        NOTES_STORED.set(len(self._notes))
        snapshot = self.notes
        for callback in list(self._subscribers):
            callback(snapshot)

    def _new_id(self) -> str:
        taken = {n.id for n in self._notes}
        note_id = self._id_factory()
        while note_id in taken:
            note_id = self._id_factory()
        return note_id
