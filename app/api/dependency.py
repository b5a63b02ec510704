from typing import Annotated

from fastapi import Depends, Request

from app.domain.surveillance.gateway import SessionGateway
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def get_session_gateway(request: Request) -> SessionGateway:
    """Return the gateway built at application startup."""
    gateway = getattr(request.app.state, "session_gateway", None)
    if gateway is None:
        raise AppError(
            errcode=AppErrorCode.E_MEDIA_NOT_CONFIGURED,
            errmesg="Session gateway is not initialized",
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        )
    return gateway


Gateway = Annotated[SessionGateway, Depends(get_session_gateway)]
