"""Tests for SessionRegistry."""

from app.domain.surveillance.registry import SessionRegistry
from app.schemas.media import MediaSession
from tests.fixtures.media_fixtures import FakeMediaServer


class TestSessionRegistry:
    def test_client_created_once_per_session_id(self, media_server: FakeMediaServer):
        registry = SessionRegistry(media_server.client_factory)

        first = registry.get_client("room-a")
        second = registry.get_client("room-a")
        other = registry.get_client("room-b")

        assert first is second
        assert other is not first
        assert media_server.clients_created == 2
        assert registry.has_client("room-a")

    def test_put_overwrites_and_forget_removes(self, media_server: FakeMediaServer):
        registry = SessionRegistry(media_server.client_factory)
        old = MediaSession(session_id="room-a")
        new = MediaSession(session_id="room-a")

        registry.put_session(old)
        registry.put_session(new)
        assert registry.get_session("room-a") is new

        registry.forget_session("room-a")
        assert registry.get_session("room-a") is None
        # Forgetting an unknown id is a no-op
        registry.forget_session("room-b")

    def test_lock_is_shared_per_session_id(self, media_server: FakeMediaServer):
        registry = SessionRegistry(media_server.client_factory)

        assert registry.lock_for("room-a") is registry.lock_for("room-a")
        assert registry.lock_for("room-a") is not registry.lock_for("room-b")

    async def test_aclose_closes_every_client(self, media_server: FakeMediaServer):
        registry = SessionRegistry(media_server.client_factory)
        clients = [registry.get_client("room-a"), registry.get_client("room-b")]

        await registry.aclose()

        assert all(c.closed for c in clients)
        assert not registry.has_client("room-a")
