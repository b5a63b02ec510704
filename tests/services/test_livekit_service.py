"""Tests for the LiveKit media backend."""

import base64
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import orjson
import pytest
from livekit import api
from livekit.protocol.models import ParticipantInfo

from app.schemas.media import IPCAM_PLATFORM, SessionFound, SessionNotFound, TokenMinted
from app.services.integrations.livekit_service import LivekitService
from app.utils.app_errors import AppError, AppErrorCode, CameraPublishFailed, MediaServerError


def make_lkapi(rooms: list | None = None, participants: list | None = None) -> MagicMock:
    lkapi = MagicMock()
    lkapi.room.list_rooms = AsyncMock(return_value=SimpleNamespace(rooms=rooms or []))
    lkapi.room.list_participants = AsyncMock(
        return_value=SimpleNamespace(participants=participants or [])
    )
    lkapi.room.create_room = AsyncMock()
    lkapi.ingress.create_ingress = AsyncMock()
    return lkapi


def patched_client(service: LivekitService, lkapi: MagicMock):
    @asynccontextmanager
    async def fake_client():
        yield lkapi

    return patch.object(service, "_get_api_client", fake_client)


def jwt_payload(token: str) -> dict:
    payload = token.split(".")[1]
    payload += "=" * (-len(payload) % 4)
    return orjson.loads(base64.urlsafe_b64decode(payload))


@pytest.fixture
def service() -> LivekitService:
    return LivekitService("wss://livekit.test", "api_key", "api_secret_with_enough_length_1234")


class TestSessions:
    async def test_find_session(self, service: LivekitService):
        lkapi = make_lkapi(rooms=[api.Room(name="room-a", sid="RM_1", creation_time=1700000000)])

        with patched_client(service, lkapi):
            lookup = await service.find_session("room-a")

        assert isinstance(lookup, SessionFound)
        assert lookup.session.session_id == "room-a"
        assert lookup.session.created_at is not None
        request = lkapi.room.list_rooms.call_args.args[0]
        assert list(request.names) == ["room-a"]

    async def test_find_session_missing(self, service: LivekitService):
        with patched_client(service, make_lkapi()):
            assert await service.find_session("room-a") == SessionNotFound("room-a")

    async def test_fetch_session_marks_ingress_participants_as_cameras(
        self, service: LivekitService
    ):
        participants = [
            ParticipantInfo(
                sid="PA_1", identity="ipcam_cam1", name="cam1", kind=ParticipantInfo.Kind.INGRESS
            ),
            ParticipantInfo(
                sid="PA_2", identity="viewer_1", name="cam2", kind=ParticipantInfo.Kind.STANDARD
            ),
        ]
        lkapi = make_lkapi(rooms=[api.Room(name="room-a", sid="RM_1")], participants=participants)

        with patched_client(service, lkapi):
            lookup = await service.fetch_session("room-a")

        assert isinstance(lookup, SessionFound)
        assert lookup.session.published_cameras() == {"cam1"}
        assert lookup.session.connections[0].platform == IPCAM_PLATFORM
        assert lookup.session.connections[1].platform is None

    async def test_create_session(self, service: LivekitService):
        lkapi = make_lkapi()
        lkapi.room.create_room.return_value = api.Room(name="room-a", sid="RM_1")

        with patched_client(service, lkapi):
            session = await service.create_session("room-a")

        assert session.session_id == "room-a"
        request = lkapi.room.create_room.call_args.args[0]
        assert request.name == "room-a"

    async def test_api_failure_is_wrapped(self, service: LivekitService):
        lkapi = make_lkapi()
        lkapi.room.list_rooms.side_effect = RuntimeError("connection reset")

        with patched_client(service, lkapi):
            with pytest.raises(MediaServerError) as exc_info:
                await service.find_session("room-a")

        assert "connection reset" in exc_info.value.errmesg


class TestMintToken:
    async def test_mint_token_for_existing_room(self, service: LivekitService):
        lkapi = make_lkapi(rooms=[api.Room(name="room-a", sid="RM_1")])

        with patched_client(service, lkapi):
            result = await service.mint_token("room-a")

        assert isinstance(result, TokenMinted)
        claims = jwt_payload(result.token)
        assert claims["iss"] == "api_key"
        assert claims["video"]["room"] == "room-a"
        assert claims["video"]["roomJoin"] is True

    async def test_mint_token_room_gone(self, service: LivekitService):
        with patched_client(service, make_lkapi()):
            assert await service.mint_token("room-a") == SessionNotFound("room-a")

    async def test_missing_credentials(self):
        service = LivekitService("wss://livekit.test", None, None)

        with pytest.raises(AppError) as exc_info:
            await service.mint_token("room-a")

        assert exc_info.value.errcode == AppErrorCode.E_MEDIA_NOT_CONFIGURED

    async def test_missing_url(self):
        service = LivekitService(None, "api_key", "api_secret")

        with pytest.raises(AppError) as exc_info:
            await service.find_session("room-a")

        assert exc_info.value.errcode == AppErrorCode.E_MEDIA_NOT_CONFIGURED


class TestPublishIpCamera:
    async def test_creates_url_ingress(self, service: LivekitService):
        lkapi = make_lkapi()
        lkapi.ingress.create_ingress.return_value = SimpleNamespace(ingress_id="IN_1")

        with patched_client(service, lkapi):
            connection = await service.publish_ip_camera(
                "room-a", "rtsp://cam1.local/stream", "cam1", True, True
            )

        assert connection.connection_id == "IN_1"
        assert connection.is_ip_camera
        assert connection.server_data == "cam1"
        request = lkapi.ingress.create_ingress.call_args.args[0]
        assert request.input_type == api.IngressInput.URL_INPUT
        assert request.url == "rtsp://cam1.local/stream"
        assert request.room_name == "room-a"
        assert request.participant_name == "cam1"

    async def test_failure_raises_camera_error(self, service: LivekitService):
        lkapi = make_lkapi()
        lkapi.ingress.create_ingress.side_effect = RuntimeError("ingress unavailable")

        with patched_client(service, lkapi):
            with pytest.raises(CameraPublishFailed) as exc_info:
                await service.publish_ip_camera("room-a", "rtsp://cam1.local/stream", "cam1")

        assert exc_info.value.camera_name == "cam1"
