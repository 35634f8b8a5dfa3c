"""List and detail view shapes for presenting notes."""

from __future__ import annotations

from typing import Any

import regex

from quicknotes.models import Note

DEFAULT_PREVIEW_LIMIT = 20
ELLIPSIS = "..."


def truncate_text(text: str, limit: int = DEFAULT_PREVIEW_LIMIT) -> str:
    """Cut ``text`` to ``limit`` characters and mark the cut with an ellipsis.

    Characters are grapheme clusters, so combining marks and emoji
    sequences are counted once and never split.
    """
    graphemes = regex.findall(r"\X", text)
    if len(graphemes) > limit:
        return "".join(graphemes[:limit]) + ELLIPSIS
    return text


def list_rows(
    notes: list[Note], limit: int = DEFAULT_PREVIEW_LIMIT
) -> list[dict[str, Any]]:
    """One row per note, in order, with a truncated preview."""
    return [
        {
            "position": position,
            "id": note.id,
            "preview": truncate_text(note.text, limit),
            "date": note.timestamp.isoformat(),
        }
        for position, note in enumerate(notes)
    ]


def detail(note: Note) -> dict[str, Any]:
    """Full note for the detail view."""
    return {
        "id": note.id,
        "text": note.text,
        "date": note.timestamp.isoformat(),
    }
