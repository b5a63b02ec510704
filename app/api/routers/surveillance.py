from pathlib import Path

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from loguru import logger

from app.api.dependency import Gateway
from app.app_config import get_app_environ_config
from app.schemas.media import SurveillanceTokenOut
from app.shared.api.utils import ApiSuccess
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))


class SurveillanceTokenSuccess(ApiSuccess):
    results: SurveillanceTokenOut


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    gateway: Gateway,
    credentials: str | None = Query(default=None),
    user_session_id: str | None = Query(default=None, alias="userSessionId"),
):
    """Landing page. With valid credentials it carries a token to join the session."""
    cfg = get_app_environ_config()
    context = {
        "session_id": user_session_id or cfg.DEFAULT_SESSION_ID,
        "server_url": cfg.media_server_url,
        "media_backend": cfg.MEDIA_BACKEND,
    }

    try:
        token = await gateway.handle(credentials, user_session_id)
    except AppError as e:
        logger.error(f"{e.errcode} {e.erresid} msg={e.errmesg} caller={e.caller_info}")
        context["error"] = e.errmesg
        return templates.TemplateResponse(request, "index.html", context, status_code=e.status_code)

    if token:
        context["token"] = token
    return templates.TemplateResponse(request, "index.html", context)


@router.get("/api/v1/surveillance/token")
async def get_token(
    gateway: Gateway,
    credentials: str | None = Query(default=None),
    user_session_id: str | None = Query(default=None, alias="userSessionId"),
) -> SurveillanceTokenSuccess:
    """Return a token to join the surveillance session as JSON."""
    if credentials is None:
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg="credentials are required",
            status_code=HttpStatusCode.BAD_REQUEST,
        )

    cfg = get_app_environ_config()
    token = await gateway.handle(credentials, user_session_id)
    assert token is not None

    return SurveillanceTokenSuccess(
        results=SurveillanceTokenOut(
            token=token,
            session_id=user_session_id or cfg.DEFAULT_SESSION_ID,
            server_url=cfg.media_server_url,
        )
    )
