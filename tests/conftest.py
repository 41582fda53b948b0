"""테스트 공통 fixture"""

import json
from unittest.mock import MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from diff_digest.client.cache import LocalNotesCache
from diff_digest.domain.notes.schemas import DiffItem, GeneratedNotes
from diff_digest.domain.notes.sse import DELTA_EVENT, DONE_EVENT, format_sse_frame
from diff_digest.domain.notes.store import NotesStore
from diff_digest.main import app

SAMPLE_NOTES_JSON = (
    '{"developerNote":"Fixed a caching bug in the data hook.",'
    '"marketingNote":"App now loads faster and more reliably."}'
)


def split_into_deltas(text: str, size: int = 7) -> list[str]:
    """텍스트를 고정 길이 delta 조각으로 분할"""
    return [text[i : i + size] for i in range(0, len(text), size)]


def build_sse_stream(deltas: list[str], final_text: str | None = None) -> str:
    """delta 이벤트와 done 이벤트로 구성된 SSE 본문 생성"""
    frames = [format_sse_frame("response.created", {"type": "response.created"})]
    frames += [
        format_sse_frame(DELTA_EVENT, {"type": DELTA_EVENT, "delta": delta})
        for delta in deltas
    ]
    if final_text is not None:
        frames.append(format_sse_frame(DONE_EVENT, {"type": DONE_EVENT, "text": final_text}))
    return "".join(frames)


@pytest.fixture
def build_stream():
    """SSE 본문 생성 helper"""
    return build_sse_stream


@pytest.fixture
def split_deltas():
    """delta 분할 helper"""
    return split_into_deltas


@pytest.fixture
def sample_notes_json() -> str:
    """diff 42 예시의 최종 노트 JSON"""
    return SAMPLE_NOTES_JSON


@pytest.fixture
def sample_notes() -> GeneratedNotes:
    """테스트용 생성 노트"""
    return GeneratedNotes.model_validate_json(SAMPLE_NOTES_JSON)


@pytest.fixture
def sample_diff_item() -> DiffItem:
    """테스트용 diff 항목"""
    return DiffItem(
        id="42",
        description="Fix caching bug",
        diff="diff --git a/src/hooks/useData.ts b/src/hooks/useData.ts\n+const cache = new Map();",
        url="https://github.com/openai/openai-node/pull/42",
    )


@pytest.fixture
def sample_diff_items() -> list[DiffItem]:
    """테스트용 diff 목록"""
    return [
        DiffItem(
            id=str(number),
            description=f"PR {number}",
            diff=f"+line {number}",
            url=f"https://github.com/openai/openai-node/pull/{number}",
        )
        for number in (1, 2, 3)
    ]


@pytest.fixture
def notes_store() -> NotesStore:
    """빈 노트 스토어"""
    return NotesStore()


@pytest.fixture
def notes_cache(tmp_path) -> LocalNotesCache:
    """임시 경로의 로컬 캐시"""
    return LocalNotesCache(tmp_path / "storage.json", ttl_hours=24)


@pytest.fixture
def async_client():
    """비동기 HTTP 클라이언트"""
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def make_event_stream():
    """stream_note_events를 대체할 비동기 제너레이터 생성 helper"""

    def _make(events: list[tuple[str, dict]], error: Exception | None = None):
        async def _stream(description: str, diff: str):
            for event in events:
                yield event
            if error is not None:
                raise error

        return _stream

    return _make


@pytest.fixture
def sse_client():
    """지정한 SSE 본문을 돌려주는 MockTransport 클라이언트 생성 helper"""

    def _create(body: str, status_code: int = 200, requests: list | None = None):
        def handler(request: httpx.Request) -> httpx.Response:
            if requests is not None:
                requests.append(json.loads(request.content))
            return httpx.Response(
                status_code,
                content=body.encode("utf-8"),
                headers={"Content-Type": "text/event-stream"},
            )

        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://test"
        )

    return _create


@pytest.fixture
def mock_github_response():
    """GitHub API 응답 mock 생성"""
    mock = MagicMock()
    mock.raise_for_status = MagicMock()
    mock.links = {}
    return mock


@pytest.fixture
def create_http_error():
    """HTTPStatusError 생성 helper"""

    def _create(status_code: int, message: str = "Error"):
        return httpx.HTTPStatusError(
            message,
            request=httpx.Request("GET", "https://test.com"),
            response=httpx.Response(status_code),
        )

    return _create
