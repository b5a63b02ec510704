"""Media server schemas shared by services and the gateway."""

from .media import (
    IPCAM_PLATFORM,
    MediaConnection,
    MediaSession,
    MintResult,
    SessionFound,
    SessionLookup,
    SessionNotFound,
    SurveillanceTokenOut,
    TokenMinted,
)

__all__ = [
    "IPCAM_PLATFORM",
    "MediaConnection",
    "MediaSession",
    "MintResult",
    "SessionFound",
    "SessionLookup",
    "SessionNotFound",
    "SurveillanceTokenOut",
    "TokenMinted",
]
