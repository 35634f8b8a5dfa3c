"""Pydantic models for Quick Notes and their persisted JSON shape."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Note(BaseModel):
    """A single dictated note. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    text: str = Field(..., description="Note text, may be empty")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        alias="date",
        description="Creation time",
    )


_NOTE_LIST = TypeAdapter(list[Note])


def encode_notes(notes: list[Note]) -> str:
    """Serialize notes to a JSON array of ``{id, text, date}`` records."""
    return _NOTE_LIST.dump_json(list(notes), by_alias=True).decode("utf-8")


def decode_notes(raw: str | bytes) -> list[Note]:
    """Parse a JSON array produced by :func:`encode_notes`.

    Raises ``pydantic.ValidationError`` on malformed JSON or wrong shape.
    """
    return _NOTE_LIST.validate_json(raw)
