import inspect
from enum import IntEnum, StrEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


class AppErrorCode(StrEnum):
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_AUTHENTICATION_FAILED = "E_AUTHENTICATION_FAILED"
    E_MEDIA_NOT_CONFIGURED = "E_MEDIA_NOT_CONFIGURED"
    E_MEDIA_SERVER_ERROR = "E_MEDIA_SERVER_ERROR"
    E_SESSION_CREATE_FAILED = "E_SESSION_CREATE_FAILED"
    E_TOKEN_MINT_FAILED = "E_TOKEN_MINT_FAILED"
    E_CAMERA_PUBLISH_FAILED = "E_CAMERA_PUBLISH_FAILED"


class AppError(Exception):
    """Error surfaced to API callers as an ApiFailure envelope.

    The raising call site is captured so the error handler can log where the
    failure originated, not where it was converted.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str = "We are sorry, an error occurred.",
        status_code: int = HttpStatusCode.INTERNAL_SERVER_ERROR,
    ):
        super().__init__(errmesg)
        self.errcode = str(errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]
        self.caller_info = self._capture_caller()

    @staticmethod
    def _capture_caller() -> str:
        # Skip this helper, __init__ and any subclass __init__ frames
        for frame_info in inspect.stack()[2:]:
            if frame_info.function != "__init__":
                module = inspect.getmodule(frame_info.frame)
                module_name = module.__name__ if module else frame_info.filename
                return f"{module_name}:{frame_info.function}:{frame_info.lineno}"
        return "unknown"

    def __str__(self) -> str:
        return self.errmesg


class MediaServerError(AppError):
    """A request to the media server failed (transport error or non-success status)."""

    def __init__(
        self,
        errmesg: str,
        status: int | None = None,
        errcode: AppErrorCode = AppErrorCode.E_MEDIA_SERVER_ERROR,
    ):
        super().__init__(errcode=errcode, errmesg=errmesg, status_code=HttpStatusCode.BAD_GATEWAY)
        # Status reported by the media server, None for transport errors
        self.status = status


class CameraPublishFailed(MediaServerError):
    def __init__(self, camera_name: str, errmesg: str, status: int | None = None):
        super().__init__(
            errmesg=f"Error publishing camera {camera_name}: {errmesg}",
            status=status,
            errcode=AppErrorCode.E_CAMERA_PUBLISH_FAILED,
        )
        self.camera_name = camera_name


class AuthenticationFailed(AppError):
    def __init__(self, errmesg: str = "Wrong credentials"):
        super().__init__(
            errcode=AppErrorCode.E_AUTHENTICATION_FAILED,
            errmesg=errmesg,
            status_code=HttpStatusCode.UNAUTHORIZED,
        )


class SessionCreateFailed(AppError):
    def __init__(self, errmesg: str):
        super().__init__(
            errcode=AppErrorCode.E_SESSION_CREATE_FAILED,
            errmesg=errmesg,
            status_code=HttpStatusCode.BAD_GATEWAY,
        )


class TokenMintFailed(AppError):
    def __init__(self, errmesg: str):
        super().__init__(
            errcode=AppErrorCode.E_TOKEN_MINT_FAILED,
            errmesg=errmesg,
            status_code=HttpStatusCode.BAD_GATEWAY,
        )


__all__ = [
    "AppError",
    "AppErrorCode",
    "AuthenticationFailed",
    "CameraPublishFailed",
    "HttpStatusCode",
    "MediaServerError",
    "SessionCreateFailed",
    "TokenMintFailed",
]
