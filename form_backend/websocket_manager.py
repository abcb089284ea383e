"""
WebSocket Manager - Pushes form change events to connected clients.

Events carry no form data, only a type and a little context; clients
re-fetch GET /api/form when they see one:
- form_updated: any edit, undo/redo, page switch or load
- form_saved: the form was written to disk
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Tracks open client sockets and fans events out to them."""

    def __init__(self):
        self._clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self._clients.add(websocket)
        logger.info("Client connected (%d open)", len(self._clients))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._clients.discard(websocket)
        logger.info("Client disconnected (%d open)", len(self._clients))

    async def broadcast(self, event: dict):
        """
        Send one event to every client at once.

        A client whose send raises is assumed gone and is dropped.
        """
        async with self._lock:
            clients = list(self._clients)
        if not clients:
            return

        payload = json.dumps(event)
        results = await asyncio.gather(
            *(client.send_text(payload) for client in clients),
            return_exceptions=True,
        )

        stale = {client for client, result in zip(clients, results) if isinstance(result, Exception)}
        if stale:
            logger.debug("Dropping %d client(s) after failed send", len(stale))
            async with self._lock:
                self._clients -= stale

    async def notify_form_updated(self, current_page_id: Optional[str] = None):
        await self.broadcast({"type": "form_updated", "current_page_id": current_page_id})

    async def notify_form_saved(self, path: Path, title: str):
        await self.broadcast({"type": "form_saved", "file_path": str(path), "title": title})


# Global instance
ws_manager = WebSocketManager()
