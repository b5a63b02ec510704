from collections.abc import Callable

from loguru import logger

from app.app_config import AppEnvironConfig
from app.services.integrations.livekit_service import LivekitService
from app.services.integrations.media_base import CameraPublisher, MediaSessionService
from app.services.integrations.openvidu_service import OpenViduClient
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

MediaClientFactory = Callable[[], MediaSessionService]


def _openvidu_client(cfg: AppEnvironConfig) -> OpenViduClient:
    if not cfg.OPENVIDU_URL or not cfg.OPENVIDU_SECRET:
        logger.error("OPENVIDU_URL or OPENVIDU_SECRET not configured")
        raise AppError(
            errcode=AppErrorCode.E_MEDIA_NOT_CONFIGURED,
            errmesg="OPENVIDU_URL and OPENVIDU_SECRET must be configured",
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        )
    return OpenViduClient(cfg.OPENVIDU_URL, cfg.OPENVIDU_SECRET, timeout=cfg.MEDIA_REQUEST_TIMEOUT)


def _livekit_service(cfg: AppEnvironConfig) -> LivekitService:
    return LivekitService(cfg.LIVEKIT_URL, cfg.LIVEKIT_API_KEY, cfg.LIVEKIT_API_SECRET)


def media_client_factory(cfg: AppEnvironConfig) -> MediaClientFactory:
    """Return a callable building one media session client for the configured backend."""
    if cfg.MEDIA_BACKEND == "livekit":
        return lambda: _livekit_service(cfg)
    return lambda: _openvidu_client(cfg)


def build_camera_publisher(cfg: AppEnvironConfig) -> CameraPublisher:
    logger.info(f"Using {cfg.MEDIA_BACKEND} camera publisher")
    if cfg.MEDIA_BACKEND == "livekit":
        return _livekit_service(cfg)
    return _openvidu_client(cfg)
