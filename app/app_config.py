from typing import Literal

import orjson
from loguru import logger
from pydantic import BaseModel

from app.shared.config import config


def parse_camera_catalog(raw: str | None) -> dict[str, str]:
    """Parse the IP_CAMERAS setting, a JSON object of camera name -> stream URI.

    Order is preserved so cameras are published in the order they are declared.
    """
    raw = (raw or "").strip()
    if not raw:
        return {}

    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise ValueError(f"IP_CAMERAS is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("IP_CAMERAS must be a JSON object of camera name -> stream URI")

    catalog: dict[str, str] = {}
    for name, uri in data.items():
        if not isinstance(uri, str) or not uri.strip():
            logger.warning(f"Skipping camera {name!r}: stream URI must be a non-empty string")
            continue
        catalog[str(name)] = uri.strip()
    return catalog


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get("DEBUG", "false").strip().lower() == "true"  # type: ignore

    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()  # type: ignore
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 5000)
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)

    # Media server selection: "openvidu" or "livekit"
    MEDIA_BACKEND: Literal["openvidu", "livekit"] = (
        (config.get("MEDIA_BACKEND") or "").strip().lower() or "openvidu"  # type: ignore
    )
    MEDIA_REQUEST_TIMEOUT: float = float((config.get("MEDIA_REQUEST_TIMEOUT") or "").strip() or 30)

    # OpenVidu configuration
    OPENVIDU_URL: str | None = (config.get("OPENVIDU_URL") or "").strip() or None
    OPENVIDU_SECRET: str | None = (config.get("OPENVIDU_SECRET") or "").strip() or None

    # LiveKit configuration
    LIVEKIT_URL: str | None = (config.get("LIVEKIT_URL") or "").strip() or None
    LIVEKIT_API_KEY: str | None = (config.get("LIVEKIT_API_KEY") or "").strip() or None
    LIVEKIT_API_SECRET: str | None = (config.get("LIVEKIT_API_SECRET") or "").strip() or None

    # Shared password users must provide to get a token
    USER_CREDENTIALS: str = config.get("USER_CREDENTIALS", "PASSWORD")  # type: ignore
    DEFAULT_SESSION_ID: str = (
        (config.get("DEFAULT_SESSION_ID") or "").strip() or "MySurveillanceSession"
    )

    IP_CAMERAS: dict[str, str] = parse_camera_catalog(config.get("IP_CAMERAS"))

    @property
    def media_server_url(self) -> str | None:
        if self.MEDIA_BACKEND == "livekit":
            return self.LIVEKIT_URL
        return self.OPENVIDU_URL


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
