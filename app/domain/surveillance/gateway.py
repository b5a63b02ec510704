"""Surveillance session gateway.

Single entry point that turns user credentials into a token for joining the
surveillance session. The first time valid credentials arrive for a session id,
the media server session is looked up or created and every configured camera
is published into it before the token is generated.

Per session id the flow is:

    Unknown -> SessionEnsured -> CamerasEnsured -> TokenIssued

If minting reports that the session no longer exists on the media server, the
session and its cameras are recreated once and minting is retried once.
"""

from loguru import logger

from app.app_config import AppEnvironConfig
from app.domain.surveillance.auth import Authenticator, SharedSecretAuthenticator
from app.domain.surveillance.registry import SessionRegistry
from app.schemas.media import MediaSession, MintResult, SessionFound, SessionNotFound
from app.services.integrations.media_base import CameraPublisher
from app.services.integrations.media_factory import build_camera_publisher, media_client_factory
from app.utils.app_errors import (
    AuthenticationFailed,
    MediaServerError,
    SessionCreateFailed,
    TokenMintFailed,
)


class SessionGateway:
    def __init__(
        self,
        authenticator: Authenticator,
        registry: SessionRegistry,
        publisher: CameraPublisher,
        cameras: dict[str, str],
        default_session_id: str,
    ):
        self._authenticator = authenticator
        self._registry = registry
        self._publisher = publisher
        self._cameras = dict(cameras)
        self._default_session_id = default_session_id

    @property
    def cameras(self) -> dict[str, str]:
        return dict(self._cameras)

    async def handle(self, credentials: str | None, session_id: str | None) -> str | None:
        """Return a join token for the session, or None when no credentials were given.

        Raises:
            AuthenticationFailed: credentials were rejected
            SessionCreateFailed: the session could not be looked up or created
            TokenMintFailed: the token could not be generated
        """
        session_id = session_id or self._default_session_id
        logger.info(f"Requesting token for session: {session_id}")

        if credentials is None:
            return None

        if not self._authenticator.validate(credentials):
            logger.warning(f"Wrong credentials for session {session_id}")
            raise AuthenticationFailed()

        session = await self._ensure_session(session_id)

        result = await self._mint_token(session_id)
        if isinstance(result, SessionNotFound):
            # Session was closed in the media server. Create it again
            logger.warning(f"Session {session_id} no longer exists in media server, recreating it")
            await self._ensure_session(session_id, stale=session)
            result = await self._mint_token(session_id)
            if isinstance(result, SessionNotFound):
                raise TokenMintFailed(
                    f"Error creating token for session {session_id}: session not found"
                )

        logger.info(f"Token generated for session {session_id}")
        return result.token

    async def _ensure_session(
        self, session_id: str, stale: MediaSession | None = None
    ) -> MediaSession:
        """Return the cached session handle, establishing it and its cameras when missing.

        When `stale` is given and still cached, it is dropped first. A handle that
        was already replaced by a concurrent request is reused as is.
        """
        async with self._registry.lock_for(session_id):
            if stale is not None and self._registry.get_session(session_id) is stale:
                self._registry.forget_session(session_id)

            session = self._registry.get_session(session_id)
            if session is not None and self._registry.has_client(session_id):
                return session

            try:
                session = await self._establish_session(session_id)
                await self._ensure_cameras(session_id)
            except MediaServerError as e:
                # Cameras were not ensured: the next request must establish again
                self._registry.forget_session(session_id)
                raise SessionCreateFailed(
                    f"Error sending request to media server: {e.errmesg}"
                ) from e
            return session

    async def _establish_session(self, session_id: str) -> MediaSession:
        client = self._registry.get_client(session_id)

        lookup = await client.find_session(session_id)
        if isinstance(lookup, SessionFound):
            logger.info(f"Session {session_id} already existed in media server")
            session = lookup.session
        else:
            logger.info(f"Session {session_id} does not exist in media server yet. Creating it...")
            session = await client.create_session(session_id)
            logger.info(f"Session {session_id} created")

        self._registry.put_session(session)
        return session

    async def _ensure_cameras(self, session_id: str) -> None:
        """Publish every catalog camera that is not already publishing into the session.

        Publishing failures are logged per camera and never abort the request.
        """
        client = self._registry.get_client(session_id)
        lookup = await client.fetch_session(session_id)
        if isinstance(lookup, SessionNotFound):
            raise MediaServerError(f"Session {session_id} not found", status=404)

        published = lookup.session.published_cameras()
        for camera_name, camera_uri in self._cameras.items():
            if camera_name in published:
                logger.debug(f"Camera {camera_name} already published in session {session_id}")
                continue
            try:
                await self._publisher.publish_ip_camera(
                    session_id, camera_uri, camera_name, True, True
                )
            except Exception as e:
                logger.error(f"Error publishing camera {camera_name}: {e}")

    async def _mint_token(self, session_id: str) -> MintResult:
        client = self._registry.get_client(session_id)
        try:
            return await client.mint_token(session_id)
        except MediaServerError as e:
            raise TokenMintFailed(
                f"Error creating token for session {session_id}: {e.errmesg}"
            ) from e

    async def aclose(self) -> None:
        await self._registry.aclose()
        aclose = getattr(self._publisher, "aclose", None)
        if aclose is not None:
            await aclose()


def build_session_gateway(cfg: AppEnvironConfig) -> SessionGateway:
    """Wire a gateway for the configured media backend, camera catalog and password."""
    logger.info(
        f"Building session gateway: backend={cfg.MEDIA_BACKEND}, cameras={list(cfg.IP_CAMERAS)}"
    )
    return SessionGateway(
        authenticator=SharedSecretAuthenticator(cfg.USER_CREDENTIALS),
        registry=SessionRegistry(media_client_factory(cfg)),
        publisher=build_camera_publisher(cfg),
        cameras=cfg.IP_CAMERAS,
        default_session_id=cfg.DEFAULT_SESSION_ID,
    )
