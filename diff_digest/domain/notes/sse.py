"""Server-Sent Events 프레임 인코딩/디코딩"""

import json

FRAME_DELIMITER = "\n\n"
DATA_PREFIX = "data: "

DELTA_EVENT = "response.output_text.delta"
DONE_EVENT = "response.output_text.done"


def format_sse_frame(event_type: str, payload: dict) -> str:
    """모델 이벤트를 `data: {event, data}` SSE 프레임으로 변환"""
    envelope = json.dumps({"event": event_type, "data": payload}, ensure_ascii=False)
    return f"{DATA_PREFIX}{envelope}{FRAME_DELIMITER}"


class SSEFrameDecoder:
    """청크 경계를 넘는 SSE 프레임을 복원하는 롤링 버퍼

    완성되지 않은 마지막 프레임은 다음 청크가 들어올 때까지 보관한다.
    """

    def __init__(self):
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, chunk: str) -> list[str]:
        """청크를 추가하고 완성된 프레임 목록 반환"""
        self._buffer += chunk
        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)
        return frames

    def reset(self) -> None:
        self._buffer = ""


def parse_data_frame(frame: str) -> dict | None:
    """`data: ` 프레임의 JSON 엔벨로프 반환. data 프레임이 아니면 None

    Raises:
        json.JSONDecodeError: 엔벨로프가 올바른 JSON이 아닌 경우
    """
    if not frame.startswith(DATA_PREFIX):
        return None
    envelope = json.loads(frame[len(DATA_PREFIX) :])
    if not isinstance(envelope, dict):
        return None
    return envelope
