"""SSE 프레임 스트림을 노트 상태로 복원"""

import json

from pydantic import ValidationError as PydanticValidationError

from diff_digest.core.exceptions import NotesParseError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import GeneratedNotes
from diff_digest.domain.notes.sse import (
    DELTA_EVENT,
    DONE_EVENT,
    SSEFrameDecoder,
    parse_data_frame,
)
from diff_digest.domain.notes.store import (
    DeltaReceived,
    GenerationCompleted,
    GenerationFailed,
    NotesStore,
)

logger = get_logger(__name__)

INCOMPLETE_STREAM_MESSAGE = "노트 생성이 완료되기 전에 스트림이 종료되었습니다"
INVALID_NOTES_MESSAGE = "생성된 노트를 해석할 수 없습니다"


def parse_final_notes(text: str) -> GeneratedNotes:
    """done 이벤트의 최종 텍스트를 노트로 변환

    Raises:
        NotesParseError: JSON이 아니거나 두 필드가 문자열이 아닌 경우
    """
    try:
        return GeneratedNotes.model_validate_json(text)
    except PydanticValidationError as e:
        raise NotesParseError(str(e)) from e


class NotesReconstructor:
    """diff 하나의 노트 스트림을 점진적으로 복원

    delta는 스토어의 누적 버퍼로 보내 부분 파싱 미리보기를 갱신하고,
    done 상태는 done 이벤트의 최종 텍스트로만 결정한다.
    """

    def __init__(self, store: NotesStore, diff_id: str):
        self._store = store
        self._diff_id = diff_id
        self._decoder = SSEFrameDecoder()

    def feed(self, chunk: str) -> None:
        for frame in self._decoder.feed(chunk):
            self.handle_frame(frame)

    def handle_frame(self, frame: str) -> None:
        try:
            envelope = parse_data_frame(frame)
        except json.JSONDecodeError as e:
            logger.warning("SSE 프레임 파싱 실패", diff_id=self._diff_id, error=str(e))
            return

        if envelope is None:
            return

        event_type = envelope.get("event")
        payload = envelope.get("data")
        if not isinstance(payload, dict):
            return

        if event_type == DELTA_EVENT:
            self._on_delta(payload)
        elif event_type == DONE_EVENT:
            self._on_done(payload)

    def _on_delta(self, payload: dict) -> None:
        delta = payload.get("delta")
        if not isinstance(delta, str):
            return
        self._store.dispatch(DeltaReceived(diff_id=self._diff_id, delta=delta))

    def _on_done(self, payload: dict) -> None:
        text = payload.get("text")

        try:
            notes = parse_final_notes(text if isinstance(text, str) else "")
        except NotesParseError as e:
            logger.error("최종 노트 파싱 실패", diff_id=self._diff_id, error=str(e))
            self._store.dispatch(
                GenerationFailed(diff_id=self._diff_id, message=INVALID_NOTES_MESSAGE)
            )
            return

        self._store.dispatch(GenerationCompleted(diff_id=self._diff_id, notes=notes))
        logger.info("노트 생성 완료", diff_id=self._diff_id)

    def finish(self) -> None:
        """스트림 정상 종료 처리. done 이벤트 없이 끝났으면 오류로 전이"""
        if self._decoder.pending.strip():
            logger.debug("미완성 SSE 프레임 폐기", diff_id=self._diff_id)
        self._decoder.reset()

        if self._store.get(self._diff_id).is_loading:
            logger.warning("done 이벤트 없이 스트림 종료", diff_id=self._diff_id)
            self._store.dispatch(
                GenerationFailed(diff_id=self._diff_id, message=INCOMPLETE_STREAM_MESSAGE)
            )
