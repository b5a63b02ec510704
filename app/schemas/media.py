from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

IPCAM_PLATFORM = "IPCAM"


class MediaConnection(BaseModel):
    """A participant (human client or published camera) joined to a session."""

    connection_id: str = Field(
        ...,
        alias="connectionId",
        validation_alias=AliasChoices("connectionId", "connection_id"),
    )
    platform: str | None = Field(default=None, description="Client platform, 'IPCAM' for cameras")
    server_data: str | None = Field(
        default=None,
        alias="serverData",
        validation_alias=AliasChoices("serverData", "server_data"),
        description="Free-form metadata set when the connection was created",
    )

    model_config = ConfigDict(populate_by_name=True)

    @property
    def is_ip_camera(self) -> bool:
        return self.platform == IPCAM_PLATFORM


class MediaSession(BaseModel):
    """Handle to a session living on the media server."""

    session_id: str = Field(
        ...,
        alias="sessionId",
        validation_alias=AliasChoices("sessionId", "id", "session_id"),
    )
    created_at: datetime | None = Field(
        default=None,
        alias="createdAt",
        validation_alias=AliasChoices("createdAt", "created_at"),
    )
    connections: list[MediaConnection] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def published_cameras(self) -> set[str]:
        """Names of the cameras already publishing into this session."""
        return {c.server_data for c in self.connections if c.is_ip_camera and c.server_data}


@dataclass(frozen=True)
class SessionFound:
    session: MediaSession


@dataclass(frozen=True)
class SessionNotFound:
    session_id: str


@dataclass(frozen=True)
class TokenMinted:
    token: str


SessionLookup = SessionFound | SessionNotFound
MintResult = TokenMinted | SessionNotFound


class SurveillanceTokenOut(BaseModel):
    token: str
    session_id: str
    server_url: str | None = None
