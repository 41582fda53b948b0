from collections.abc import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from openai import APIError

from diff_digest.api.v1.schemas.notes import GenerateNotesRequest
from diff_digest.core.config import settings
from diff_digest.core.context import set_diff_id
from diff_digest.core.exceptions import ErrorCode, LLMError, ValidationError
from diff_digest.core.limiter import limiter
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import GeneratedNotes
from diff_digest.domain.notes.sse import format_sse_frame
from diff_digest.infra.llm.client import generate_release_notes, stream_note_events

router = APIRouter(tags=["notes"])
logger = get_logger(__name__)

DIFF_PREVIEW_LENGTH = 100

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _diff_preview(diff: str) -> str:
    if len(diff) > DIFF_PREVIEW_LENGTH:
        return diff[:DIFF_PREVIEW_LENGTH] + "..."
    return diff


def _validate_request(request: Request, payload: GenerateNotesRequest) -> tuple[str, str, str]:
    """필수 필드 검증 후 (id, description, diff) 반환"""
    missing = payload.missing_fields()
    if missing:
        raise ValidationError(
            detail=f"필수 필드 누락: {', '.join(missing)}",
            error_code=ErrorCode.MISSING_FIELDS,
        )

    set_diff_id(payload.id)
    request.state.diff_id = payload.id
    logger.info(
        "노트 생성 요청",
        diff_id=payload.id,
        description=payload.description,
        diff_preview=_diff_preview(payload.diff),
    )
    return payload.id, payload.description, payload.diff


def _to_llm_error(error: Exception) -> LLMError:
    """업스트림 상태 코드가 있으면 유지한 LLMError로 변환"""
    status_code = getattr(error, "status_code", None)
    if not isinstance(status_code, int):
        status_code = None
    message = error.message if isinstance(error, APIError) else str(error)
    return LLMError(status_code=status_code, detail=message or type(error).__name__)


async def _relay_events(
    diff_id: str,
    first: tuple[str, dict] | None,
    events: AsyncIterator[tuple[str, dict]],
) -> AsyncIterator[str]:
    """모델 이벤트를 SSE 프레임으로 중계. 중간 실패는 전송 계층까지 전파"""
    count = 0
    try:
        if first is not None:
            count += 1
            yield format_sse_frame(*first)
        async for event_type, payload in events:
            count += 1
            yield format_sse_frame(event_type, payload)
    except Exception as e:
        logger.error("노트 스트리밍 중단", diff_id=diff_id, events=count, error=str(e))
        raise

    logger.info("노트 스트리밍 완료", diff_id=diff_id, events=count)


@router.post("/generate-notes")
@limiter.limit(settings.rate_limit_generate_notes)
async def generate_notes_stream(request: Request, payload: GenerateNotesRequest):
    diff_id, description, diff = _validate_request(request, payload)

    events = stream_note_events(description, diff)

    # 첫 이벤트까지 받아야 인증/네트워크/쿼터 오류를 JSON 응답으로 돌려줄 수 있다
    try:
        first = await anext(events)
    except StopAsyncIteration:
        first = None
    except Exception as e:
        logger.error("노트 스트림 시작 실패", diff_id=diff_id, error=str(e))
        raise _to_llm_error(e) from e

    return StreamingResponse(
        _relay_events(diff_id, first, events),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/generate-notes/sync", response_model=GeneratedNotes)
@limiter.limit(settings.rate_limit_generate_notes)
async def generate_notes_sync(request: Request, payload: GenerateNotesRequest):
    diff_id, description, diff = _validate_request(request, payload)

    try:
        notes = await generate_release_notes(description, diff, session_id=diff_id)
    except Exception as e:
        logger.error("노트 생성 실패", diff_id=diff_id, error=str(e))
        raise _to_llm_error(e) from e

    return notes
