from enum import Enum

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from diff_digest.core.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """에러 코드 열거형"""

    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELDS = "MISSING_FIELDS"
    GITHUB_API_ERROR = "GITHUB_API_ERROR"
    LLM_API_ERROR = "LLM_API_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CustomException(Exception):
    def __init__(
        self,
        status_code: int,
        error_code: ErrorCode | str,
        message: str,
        detail: str | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationError(CustomException):
    def __init__(self, detail: str | None = None, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        super().__init__(
            status_code=400,
            error_code=error_code,
            message="입력값이 올바르지 않습니다",
            detail=detail,
        )


class UpstreamError(CustomException):
    """외부 API 실패. 응답 상태 코드가 있으면 그대로 전달, 없으면 500"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        super().__init__(
            status_code=status_code or 500,
            error_code=error_code,
            message=message,
            detail=detail,
        )


class GitHubAPIError(UpstreamError):
    def __init__(self, status_code: int | None = None, detail: str | None = None):
        super().__init__(
            message="diff 목록을 가져오지 못했습니다",
            error_code=ErrorCode.GITHUB_API_ERROR,
            status_code=status_code,
            detail=detail,
        )


class LLMError(UpstreamError):
    def __init__(self, status_code: int | None = None, detail: str | None = None):
        super().__init__(
            message="노트 생성에 실패했습니다",
            error_code=ErrorCode.LLM_API_ERROR,
            status_code=status_code,
            detail=detail,
        )


class NotesParseError(ValueError):
    """done 이벤트의 최종 JSON을 해석할 수 없음"""


class StreamTransportError(Exception):
    """노트 스트림 전송 실패 (HTTP 오류 상태, 연결 끊김, done 이벤트 없는 종료)"""


def _error_body(error_code: ErrorCode | str, message: str, detail: str | None) -> dict:
    content = {
        "error": message,
        "error_code": error_code,
    }
    if detail:
        content["details"] = detail
    return content


def register_exception_handlers(app):
    @app.exception_handler(CustomException)
    async def custom_exception_handler(request: Request, exc: CustomException):
        if exc.status_code >= 500:
            logger.error(
                "요청 처리 실패",
                path=request.url.path,
                error_code=exc.error_code,
                detail=exc.detail,
            )

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message, exc.detail),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        locations = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content=_error_body(
                ErrorCode.INVALID_INPUT,
                "입력값이 올바르지 않습니다",
                ", ".join(locations) or None,
            ),
        )
