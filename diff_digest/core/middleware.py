"""
HTTP 요청 로깅 미들웨어

- X-Request-ID 헤더가 있으면 그대로, 없으면 새 request_id 사용
- 노트 생성 요청은 라우터가 request.state에 남긴 diff_id를 함께 기록
- SSE 응답은 헤더 전송 시점에 완료 로그를 남기므로 streaming 여부를 표시
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from diff_digest.core.context import clear_context, set_request_id
from diff_digest.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"

SKIP_PATHS = {"/health", "/docs", "/openapi.json"}


def _is_event_stream(response: Response) -> bool:
    return response.headers.get("content-type", "").startswith(EVENT_STREAM_MEDIA_TYPE)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """request_id 부여 및 API 요청 로깅"""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        start_time = time.perf_counter()

        logger.info("요청 시작", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
            logger.info(
                "요청 완료",
                path=request.url.path,
                status_code=response.status_code,
                diff_id=getattr(request.state, "diff_id", None),
                streaming=_is_event_stream(response),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            logger.error(
                "요청 실패",
                path=request.url.path,
                diff_id=getattr(request.state, "diff_id", None),
                error=str(e),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        finally:
            clear_context()
