"""LiveKit media backend.

This module provides a thin wrapper around the `livekit-api` package that maps
LiveKit concepts onto the surveillance gateway's media interface:

* a session is a LiveKit room, named after the session id
* connections are the room participants; ingress participants are cameras
* camera publishing creates a URL ingress pulling the camera stream

Based on the official LiveKit Python SDK:
https://github.com/livekit/python-sdks

Usage:
    from app.services.integrations.livekit_service import LivekitService

    service = LivekitService(url, api_key, api_secret)
    lookup = await service.find_session("MySurveillanceSession")
    result = await service.mint_token("MySurveillanceSession")
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uuid import uuid4

from livekit import api
from livekit.api.twirp_client import TwirpError, TwirpErrorCode
from livekit.protocol.models import ParticipantInfo
from loguru import logger

from app.schemas.media import (
    IPCAM_PLATFORM,
    MediaConnection,
    MediaSession,
    MintResult,
    SessionFound,
    SessionLookup,
    SessionNotFound,
    TokenMinted,
)
from app.utils.app_errors import (
    AppError,
    AppErrorCode,
    CameraPublishFailed,
    HttpStatusCode,
    MediaServerError,
)


def _media_error(e: Exception) -> MediaServerError:
    if isinstance(e, TwirpError):
        return MediaServerError(f"LiveKit {e.code}: {e.message}", status=e.status)
    return MediaServerError(f"{type(e).__name__}: {e}")


class LivekitService:
    """LiveKit implementation of MediaSessionService and CameraPublisher."""

    def __init__(
        self,
        url: str | None,
        api_key: str | None,
        api_secret: str | None,
        *,
        empty_timeout: int = 300,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._api_secret = api_secret
        self._empty_timeout = empty_timeout
        logger.info("LivekitService initialized")

    def _require_credentials(self) -> tuple[str, str]:
        if not self._api_key or not self._api_secret:
            logger.error("LIVEKIT_API_KEY or LIVEKIT_API_SECRET not configured")
            raise AppError(
                errcode=AppErrorCode.E_MEDIA_NOT_CONFIGURED,
                errmesg="RTC provider credentials must be configured. Set them in env.local or environment variables.",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )
        return self._api_key, self._api_secret

    @asynccontextmanager
    async def _get_api_client(self) -> AsyncIterator[api.LiveKitAPI]:
        """Internal method to get LiveKit API client.

        Yields:
            LiveKitAPI instance

        Raises:
            AppError: If LIVEKIT_URL or the API credentials are not configured
        """
        if not self._url:
            logger.error("LIVEKIT_URL not configured")
            raise AppError(
                errcode=AppErrorCode.E_MEDIA_NOT_CONFIGURED,
                errmesg="RTC provider URL must be configured. Set it in env.local or environment variables.",
                status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
            )
        api_key, api_secret = self._require_credentials()

        logger.debug(f"Creating LiveKit API client for URL={self._url}")
        async with api.LiveKitAPI(self._url, api_key, api_secret) as lkapi:
            yield lkapi

    async def _get_room(self, lkapi: api.LiveKitAPI, room_name: str) -> api.Room | None:
        try:
            response = await lkapi.room.list_rooms(api.ListRoomsRequest(names=[room_name]))
        except Exception as e:
            raise _media_error(e) from e
        if response.rooms:
            return response.rooms[0]
        return None

    async def find_session(self, session_id: str) -> SessionLookup:
        async with self._get_api_client() as lkapi:
            room = await self._get_room(lkapi, session_id)
        if room is None:
            return SessionNotFound(session_id)
        return SessionFound(_room_to_session(room))

    async def fetch_session(self, session_id: str) -> SessionLookup:
        """Get room info and its participants."""
        async with self._get_api_client() as lkapi:
            room = await self._get_room(lkapi, session_id)
            if room is None:
                return SessionNotFound(session_id)
            try:
                response = await lkapi.room.list_participants(
                    api.ListParticipantsRequest(room=session_id)
                )
            except TwirpError as e:
                if e.code == TwirpErrorCode.NOT_FOUND:
                    return SessionNotFound(session_id)
                raise _media_error(e) from e
            except Exception as e:
                raise _media_error(e) from e

        session = _room_to_session(room)
        session.connections = [_participant_to_connection(p) for p in response.participants]
        return SessionFound(session)

    async def create_session(self, session_id: str) -> MediaSession:
        """Create a LiveKit room named after the session id (idempotent in LiveKit)."""
        logger.info(
            f"Creating LiveKit room: room_name={session_id}, empty_timeout={self._empty_timeout}"
        )
        async with self._get_api_client() as lkapi:
            try:
                room = await lkapi.room.create_room(
                    api.CreateRoomRequest(name=session_id, empty_timeout=self._empty_timeout)
                )
            except Exception as e:
                raise _media_error(e) from e
        logger.debug(f"Successfully created LiveKit room: name={room.name}, sid={room.sid}")
        return _room_to_session(room)

    async def mint_token(self, session_id: str) -> MintResult:
        """Create a LiveKit JWT access token for the room.

        Tokens are signed locally, so the room is looked up first: a room that
        no longer exists is reported as SessionNotFound.
        """
        api_key, api_secret = self._require_credentials()
        async with self._get_api_client() as lkapi:
            room = await self._get_room(lkapi, session_id)
        if room is None:
            return SessionNotFound(session_id)

        identity = f"viewer_{uuid4().hex[:12]}"
        logger.info(f"Creating LiveKit access token for identity={identity}, room={session_id}")

        grants = api.VideoGrants(
            room_join=True,
            room=session_id,
            can_publish=True,
            can_subscribe=True,
            can_publish_data=True,
        )
        token = api.AccessToken(api_key, api_secret).with_identity(identity).with_grants(grants)
        return TokenMinted(token.to_jwt())

    async def publish_ip_camera(
        self,
        session_id: str,
        camera_uri: str,
        camera_name: str,
        adaptative_bitrate: bool = True,
        only_play_with_subscribers: bool = True,
    ) -> MediaConnection:
        """Pull a camera stream into the room through a URL ingress.

        LiveKit ingress always publishes, so only_play_with_subscribers has no
        counterpart; adaptative_bitrate toggles transcoding into simulcast layers.
        """
        logger.info(f"Creating LiveKit ingress for camera={camera_name}, room={session_id}")
        async with self._get_api_client() as lkapi:
            try:
                info = await lkapi.ingress.create_ingress(
                    api.CreateIngressRequest(
                        input_type=api.IngressInput.URL_INPUT,
                        name=camera_name,
                        room_name=session_id,
                        participant_identity=f"ipcam_{camera_name}",
                        participant_name=camera_name,
                        url=camera_uri,
                        enable_transcoding=adaptative_bitrate,
                    )
                )
            except Exception as e:
                err = _media_error(e)
                raise CameraPublishFailed(camera_name, err.errmesg, status=err.status) from e

        logger.debug(f"Created ingress {info.ingress_id} for camera {camera_name}")
        return MediaConnection(
            connection_id=info.ingress_id,
            platform=IPCAM_PLATFORM,
            server_data=camera_name,
        )

    async def aclose(self) -> None:
        # LiveKitAPI sessions are opened per call
        return None


def _room_to_session(room: api.Room) -> MediaSession:
    created_at = (
        datetime.fromtimestamp(room.creation_time, tz=timezone.utc) if room.creation_time else None
    )
    return MediaSession(session_id=room.name, created_at=created_at)


def _participant_to_connection(participant: ParticipantInfo) -> MediaConnection:
    platform = IPCAM_PLATFORM if participant.kind == ParticipantInfo.Kind.INGRESS else None
    return MediaConnection(
        connection_id=participant.sid,
        platform=platform,
        server_data=participant.name,
    )


__all__ = ["LivekitService"]
