"""Interfaces the surveillance gateway needs from a media server.

Two collaborators are kept apart even when one backend implements both:

* `MediaSessionService` owns session lifecycle and token minting.
* `CameraPublisher` pushes an external camera stream into an existing session.

Implementations raise `MediaServerError` for transport failures and unexpected
statuses. A session that does not exist is not an error: it is reported as a
`SessionNotFound` value.
"""

from typing import Protocol

from app.schemas.media import MediaConnection, MediaSession, MintResult, SessionLookup


class MediaSessionService(Protocol):
    async def find_session(self, session_id: str) -> SessionLookup: ...

    async def create_session(self, session_id: str) -> MediaSession: ...

    async def fetch_session(self, session_id: str) -> SessionLookup: ...

    async def mint_token(self, session_id: str) -> MintResult: ...

    async def aclose(self) -> None: ...


class CameraPublisher(Protocol):
    async def publish_ip_camera(
        self,
        session_id: str,
        camera_uri: str,
        camera_name: str,
        adaptative_bitrate: bool = True,
        only_play_with_subscribers: bool = True,
    ) -> MediaConnection: ...
