"""OpenVidu REST API client.

Covers the subset of https://docs.openvidu.io/en/stable/reference-docs/REST-API/
the surveillance gateway relies on: session lookup and creation, token
generation and IP camera publishing.

Usage:
    client = OpenViduClient("https://openvidu.example.com:4443", "MY_SECRET")
    lookup = await client.find_session("MySurveillanceSession")
    result = await client.mint_token("MySurveillanceSession")
    await client.aclose()
"""

from __future__ import annotations

from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

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
from app.utils.app_errors import CameraPublishFailed, MediaServerError

OPENVIDU_USERNAME = "OPENVIDUAPP"
API_PREFIX = "/openvidu/api"

ModelT = TypeVar("ModelT", bound=BaseModel)


class OpenViduClient:
    def __init__(
        self,
        base_url: str,
        secret: str,
        *,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}{API_PREFIX}",
            auth=httpx.BasicAuth(OPENVIDU_USERNAME, secret),
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"OpenVidu request failed: {method} {path} - {type(e).__name__}: {e}")
            raise MediaServerError(f"{type(e).__name__}: {e}") from e
        logger.debug(f"OpenVidu {method} {path} -> {response.status_code}")
        return response

    @staticmethod
    def _json_body(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise MediaServerError(f"Invalid OpenVidu response: {e}") from e
        if not isinstance(data, dict):
            raise MediaServerError(
                f"Invalid OpenVidu response: expected a JSON object, got {type(data).__name__}"
            )
        return data

    @staticmethod
    def _validate(model: type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MediaServerError(f"Invalid OpenVidu response: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        detail = response.text.strip() or response.reason_phrase
        raise MediaServerError(
            f"OpenVidu Server responded {response.status_code}: {detail}",
            status=response.status_code,
        )

    async def list_sessions(self) -> list[MediaSession]:
        """Fetch every active session."""
        response = await self._request("GET", "/sessions")
        self._raise_for_status(response)
        content = self._json_body(response).get("content") or []
        if not isinstance(content, list):
            raise MediaServerError("Invalid OpenVidu response: session content is not a list")
        return [self._validate(MediaSession, _flatten_session(s)) for s in content]

    async def find_session(self, session_id: str) -> SessionLookup:
        """Look for an active session with the given id among all active sessions."""
        for session in await self.list_sessions():
            if session.session_id == session_id:
                return SessionFound(session)
        return SessionNotFound(session_id)

    async def fetch_session(self, session_id: str) -> SessionLookup:
        """Fetch one session, including its active connections."""
        response = await self._request("GET", f"/sessions/{_path_segment(session_id)}")
        if response.status_code == 404:
            return SessionNotFound(session_id)
        self._raise_for_status(response)
        return SessionFound(
            self._validate(MediaSession, _flatten_session(self._json_body(response)))
        )

    async def create_session(self, session_id: str) -> MediaSession:
        """Create a session with a custom id.

        OpenVidu answers 409 when the id is already taken; the existing session
        is then fetched and returned.
        """
        response = await self._request("POST", "/sessions", json={"customSessionId": session_id})
        if response.status_code == 409:
            logger.info(f"Session {session_id} already exists in OpenVidu Server")
            lookup = await self.fetch_session(session_id)
            if isinstance(lookup, SessionFound):
                return lookup.session
            raise MediaServerError(
                f"Session {session_id} reported as existing but could not be fetched",
                status=404,
            )
        self._raise_for_status(response)
        return self._validate(MediaSession, _flatten_session(self._json_body(response)))

    async def mint_token(self, session_id: str) -> MintResult:
        """Generate a join token for a session.

        Returns SessionNotFound when the session was closed in OpenVidu Server.
        """
        response = await self._request(
            "POST",
            f"/sessions/{_path_segment(session_id)}/connection",
            json={"type": "WEBRTC", "role": "PUBLISHER"},
        )
        if response.status_code == 404:
            return SessionNotFound(session_id)
        self._raise_for_status(response)
        token = self._json_body(response).get("token")
        if not token or not isinstance(token, str):
            raise MediaServerError(f"OpenVidu Server returned no token for session {session_id}")
        return TokenMinted(token)

    async def publish_ip_camera(
        self,
        session_id: str,
        camera_uri: str,
        camera_name: str,
        adaptative_bitrate: bool = True,
        only_play_with_subscribers: bool = True,
    ) -> MediaConnection:
        """Publish an RTSP stream into a session as an IPCAM connection."""
        body = {
            "type": IPCAM_PLATFORM,
            "rtspUri": camera_uri,
            "data": camera_name,
            "adaptativeBitrate": adaptative_bitrate,
            "onlyPlayWithSubscribers": only_play_with_subscribers,
        }
        try:
            response = await self._request(
                "POST", f"/sessions/{_path_segment(session_id)}/connection", json=body
            )
            self._raise_for_status(response)
            connection = self._validate(MediaConnection, self._json_body(response))
        except MediaServerError as e:
            raise CameraPublishFailed(camera_name, e.errmesg, status=e.status) from e

        logger.info(f"Published camera {camera_name} ({camera_uri}) into session {session_id}")
        return connection

    async def aclose(self) -> None:
        await self._client.aclose()


def _path_segment(session_id: str) -> str:
    return quote(session_id, safe="")


def _flatten_session(data: Any) -> Any:
    """OpenVidu nests connections as {"numberOfElements": n, "content": [...]}."""
    if not isinstance(data, dict):
        return data
    connections = data.get("connections") or {}
    if isinstance(connections, dict):
        connections = connections.get("content", [])
    return {**data, "connections": connections}


__all__ = ["OpenViduClient"]
