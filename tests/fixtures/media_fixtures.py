"""In-memory media server fixtures for gateway and route tests."""

import pytest

from app.domain.surveillance.auth import SharedSecretAuthenticator
from app.domain.surveillance.gateway import SessionGateway
from app.domain.surveillance.registry import SessionRegistry
from app.schemas.media import (
    IPCAM_PLATFORM,
    MediaConnection,
    MediaSession,
    SessionFound,
    SessionNotFound,
    TokenMinted,
)
from app.utils.app_errors import CameraPublishFailed, MediaServerError

TEST_PASSWORD = "PASSWORD"
TEST_CAMERAS = {
    "cam1": "rtsp://cam1.local/stream",
    "cam2": "rtsp://cam2.local/stream",
}


class FakeMediaServer:
    """Media server state shared by every client built by the factory."""

    def __init__(self) -> None:
        self.sessions: dict[str, MediaSession] = {}
        self.clients_created = 0
        self.find_calls = 0
        self.create_calls = 0
        self.fetch_calls = 0
        self.mint_calls = 0
        self.publish_calls: list[str] = []
        # Number of upcoming mint calls that report the session as gone
        self.mint_not_found = 0
        self.mint_error: MediaServerError | None = None
        self.find_error: MediaServerError | None = None
        self.fetch_error: MediaServerError | None = None
        self.failing_cameras: set[str] = set()

    def add_connection(self, session_id: str, connection: MediaConnection) -> None:
        self.sessions[session_id].connections.append(connection)

    def client_factory(self) -> "FakeMediaClient":
        self.clients_created += 1
        return FakeMediaClient(self)


class FakeMediaClient:
    def __init__(self, server: FakeMediaServer) -> None:
        self.server = server
        self.closed = False

    async def find_session(self, session_id: str):
        self.server.find_calls += 1
        if self.server.find_error is not None:
            raise self.server.find_error
        session = self.server.sessions.get(session_id)
        if session is None:
            return SessionNotFound(session_id)
        return SessionFound(session)

    async def fetch_session(self, session_id: str):
        self.server.fetch_calls += 1
        if self.server.fetch_error is not None:
            raise self.server.fetch_error
        session = self.server.sessions.get(session_id)
        if session is None:
            return SessionNotFound(session_id)
        return SessionFound(session.model_copy(deep=True))

    async def create_session(self, session_id: str) -> MediaSession:
        self.server.create_calls += 1
        session = MediaSession(session_id=session_id)
        self.server.sessions[session_id] = session
        return session

    async def mint_token(self, session_id: str):
        self.server.mint_calls += 1
        if self.server.mint_error is not None:
            raise self.server.mint_error
        if self.server.mint_not_found > 0:
            self.server.mint_not_found -= 1
            return SessionNotFound(session_id)
        if session_id not in self.server.sessions:
            return SessionNotFound(session_id)
        return TokenMinted(f"tok_{session_id}_{self.server.mint_calls}")

    async def aclose(self) -> None:
        self.closed = True


class FakeCameraPublisher:
    def __init__(self, server: FakeMediaServer) -> None:
        self.server = server

    async def publish_ip_camera(
        self,
        session_id: str,
        camera_uri: str,
        camera_name: str,
        adaptative_bitrate: bool = True,
        only_play_with_subscribers: bool = True,
    ) -> MediaConnection:
        self.server.publish_calls.append(camera_name)
        if camera_name in self.server.failing_cameras:
            raise CameraPublishFailed(camera_name, "rtsp source unreachable", status=500)
        connection = MediaConnection(
            connection_id=f"ipc_{camera_name}",
            platform=IPCAM_PLATFORM,
            server_data=camera_name,
        )
        self.server.add_connection(session_id, connection)
        return connection


@pytest.fixture
def media_server() -> FakeMediaServer:
    return FakeMediaServer()


@pytest.fixture
def gateway(media_server: FakeMediaServer) -> SessionGateway:
    return SessionGateway(
        authenticator=SharedSecretAuthenticator(TEST_PASSWORD),
        registry=SessionRegistry(media_server.client_factory),
        publisher=FakeCameraPublisher(media_server),
        cameras=TEST_CAMERAS,
        default_session_id="MySurveillanceSession",
    )
