from fastapi import APIRouter

from app.app_config import get_app_environ_config
from .utils import ApiSuccess


router = APIRouter()


@router.get('/health', response_model=ApiSuccess)
async def health():
    cfg = get_app_environ_config()
    return ApiSuccess(results={"status": "OK", "media_backend": cfg.MEDIA_BACKEND})
