"""Bridge from a dictation completion callback to the notes manager.

Speech recognition hands back a list of candidate strings (best first), or
nothing at all when the user cancels. Only the first candidate is kept.
"""

from __future__ import annotations

import logging
from typing import Any

from quicknotes.manager import NotesManager, PersistenceResult

logger = logging.getLogger("quicknotes.dictation")


def first_candidate(result: Any) -> str | None:
    """Return the first recognized string, or None if there is none."""
    if not isinstance(result, (list, tuple)) or not result:
        return None
    candidate = result[0]
    if not isinstance(candidate, str):
        return None
    return candidate


def handle_dictation_result(
    manager: NotesManager, result: Any
) -> PersistenceResult | None:
    """Add one note for a successful recognition, otherwise do nothing."""
    text = first_candidate(result)
    if text is None:
        logger.debug("Dictation returned no usable text: %r", result)
        return None
    return manager.add_note(text)
