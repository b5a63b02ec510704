"""In-process registry of media session handles and clients, keyed by session id."""

import asyncio
from collections import defaultdict

from loguru import logger

from app.schemas.media import MediaSession
from app.services.integrations.media_base import MediaSessionService
from app.services.integrations.media_factory import MediaClientFactory


class SessionRegistry:
    """Holds at most one session handle and one client per session id.

    Callers serialize ensure/recreate work for an id with `lock_for(session_id)`;
    different ids never wait on each other. Entries are only replaced, never
    evicted, for the lifetime of the process.
    """

    def __init__(self, client_factory: MediaClientFactory):
        self._client_factory = client_factory
        self._sessions: dict[str, MediaSession] = {}
        self._clients: dict[str, MediaSessionService] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        return self._locks[session_id]

    def get_session(self, session_id: str) -> MediaSession | None:
        return self._sessions.get(session_id)

    def put_session(self, session: MediaSession) -> None:
        self._sessions[session.session_id] = session

    def forget_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def has_client(self, session_id: str) -> bool:
        return session_id in self._clients

    def get_client(self, session_id: str) -> MediaSessionService:
        """Return the client bound to this session id, creating it on first use."""
        client = self._clients.get(session_id)
        if client is None:
            client = self._client_factory()
            self._clients[session_id] = client
            logger.debug(f"Created media client for session {session_id}")
        return client

    async def aclose(self) -> None:
        for session_id, client in list(self._clients.items()):
            try:
                await client.aclose()
            except Exception as e:
                logger.warning(f"Failed to close media client for session {session_id}: {e}")
        self._clients.clear()
