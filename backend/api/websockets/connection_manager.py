"""WebSocket connection manager for streamed simulations."""

from fastapi import WebSocket
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging
import json
from uuid import uuid4

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks active simulation WebSocket connections.

    Each connection gets a session id; events are JSON-encoded with a
    ``type`` field and a server timestamp.
    """

    def __init__(self):
        """Initialize connection manager."""
        # Map of session_id -> WebSocket connection
        self.active_connections: Dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket, session_id: Optional[str] = None) -> str:
        """
        Accept and register a new WebSocket connection.

        Returns:
            The session id assigned to the connection
        """
        await websocket.accept()
        session_id = session_id or str(uuid4())
        self.active_connections[session_id] = websocket
        logger.info(f"WebSocket connected - session_id: {session_id}")
        return session_id

    async def disconnect(self, session_id: str) -> None:
        """Unregister a WebSocket connection."""
        self.active_connections.pop(session_id, None)
        logger.info(f"WebSocket disconnected - session_id: {session_id}")

    async def send_event(self, session_id: str, event_type: str, **data: Any) -> bool:
        """
        Send one event to a session.

        Returns:
            False if the session is gone or the send failed
        """
        websocket = self.active_connections.get(session_id)
        if websocket is None:
            return False

        message = {
            "type": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **data,
        }
        try:
            await websocket.send_text(json.dumps(message, default=str))
            return True
        except Exception as e:
            logger.error(f"Error sending {event_type} to session {session_id}: {str(e)}")
            return False

    def get_connection_count(self) -> int:
        return len(self.active_connections)


# Global connection manager instance
manager = ConnectionManager()
