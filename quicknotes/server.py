"""
Quick Notes MCP Server

Exposes tools for dictating, listing, reading and deleting notes via the
Model Context Protocol. Runs on port 8001 with SSE transport by default.
"""

import logging
from datetime import UTC, datetime

from mcp.server.fastmcp import FastMCP
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.requests import Request
from starlette.responses import Response

from quicknotes.backends import create_backend
from quicknotes.config import Settings, settings
from quicknotes.dictation import handle_dictation_result
from quicknotes.display import detail, list_rows
from quicknotes.manager import NotesManager, PersistenceResult

logger = logging.getLogger("quicknotes.server")


def _persistence_payload(result: PersistenceResult) -> dict:
    return {"saved": result.ok, "error": result.error}


# ---------------------------------------------------------------------------
# Tool implementations
# ---------------------------------------------------------------------------


class NoteTools:
    """Tool bodies bound to one notes manager."""

    def __init__(self, manager: NotesManager, preview_limit: int = 20) -> None:
        self.manager = manager
        self.preview_limit = preview_limit

    def add_note(self, text: str) -> dict:
        result = self.manager.add_note(text)
        note = self.manager.get(len(self.manager) - 1)
        logger.info("Tool add_note invoked — id=%s", note.id)
        return {
            "note_id": note.id,
            "message": "Note added.",
            **_persistence_payload(result),
        }

    def submit_dictation(self, results: list[str] | None = None) -> dict:
        result = handle_dictation_result(self.manager, results)
        if result is None:
            logger.info("Tool submit_dictation invoked — no text recognized")
            return {"added": False, "count": len(self.manager)}
        note = self.manager.get(len(self.manager) - 1)
        logger.info("Tool submit_dictation invoked — id=%s", note.id)
        return {
            "added": True,
            "note_id": note.id,
            "count": len(self.manager),
            **_persistence_payload(result),
        }

    def list_notes(self) -> dict:
        rows = list_rows(self.manager.notes, self.preview_limit)
        logger.info("Tool list_notes invoked — found=%d", len(rows))
        return {"count": len(rows), "notes": rows}

    def get_note(self, position: int) -> dict:
        try:
            note = self.manager.get(position)
        except IndexError as exc:
            raise ValueError(str(exc)) from exc
        logger.info("Tool get_note invoked — position=%d", position)
        return detail(note)

    def delete_notes(self, positions: list[int]) -> dict:
        before = len(self.manager)
        result = self.manager.delete_note(set(positions))
        deleted = before - len(self.manager)
        logger.info("Tool delete_notes invoked — deleted=%d", deleted)
        return {
            "deleted": deleted,
            "count": len(self.manager),
            **_persistence_payload(result),
        }

    def health_check(self) -> dict:
        logger.info("Tool health_check invoked")
        last_load = self.manager.last_load
        return {
            "status": "healthy",
            "server": "quick-notes",
            "total_notes": len(self.manager),
            "last_load_ok": last_load.ok,
            "timestamp": datetime.now(UTC).isoformat(),
        }


# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------


def build_server(manager: NotesManager, config: Settings = settings) -> FastMCP:
    """Create a FastMCP server whose tools operate on ``manager``."""
    mcp = FastMCP("quick-notes", host=config.server_host, port=config.server_port)
    tools = NoteTools(manager, preview_limit=config.preview_limit)

    @mcp.tool()
    def add_note(text: str) -> dict:
        """Add a new note with the given text.

        Use this tool when the user dictates or types something to remember.
        Empty text is accepted.

        Args:
            text: The full text of the note.

        Returns:
            Dictionary with the generated note_id and whether it was saved.
        """
        return tools.add_note(text)

    @mcp.tool()
    def submit_dictation(results: list[str] | None = None) -> dict:
        """Submit speech recognition candidates; the first one becomes a note.

        Args:
            results: Recognized strings, best candidate first. Empty or
                missing means the dictation produced nothing.

        Returns:
            Dictionary saying whether a note was added.
        """
        return tools.submit_dictation(results)

    @mcp.tool()
    def list_notes() -> dict:
        """List all notes in order with a short preview of each.

        Returns:
            Dictionary with the note count and one row per note.
        """
        return tools.list_notes()

    @mcp.tool()
    def get_note(position: int) -> dict:
        """Return the full text of the note at a list position.

        Args:
            position: Zero-based index into the list returned by list_notes.
        """
        return tools.get_note(position)

    @mcp.tool()
    def delete_notes(positions: list[int]) -> dict:
        """Delete the notes at the given list positions.

        Positions that do not exist are ignored.

        Args:
            positions: Zero-based indexes into the current list.
        """
        return tools.delete_notes(positions)

    @mcp.tool()
    def health_check() -> dict:
        """Check whether the Quick Notes server is healthy.

        Returns:
            Dictionary with server status, note count, and timestamp.
        """
        return tools.health_check()

    @mcp.custom_route("/metrics", methods=["GET"])
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return mcp


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    manager = NotesManager(create_backend(settings), storage_key=settings.storage_key)
    if not manager.last_load.ok:
        logger.warning("Starting with no notes: %s", manager.last_load.error)
    mcp = build_server(manager)
    logger.info("Starting Quick Notes MCP server on port %d ...", settings.server_port)
    mcp.run(transport="sse")


if __name__ == "__main__":
    main()
