"""SSE 프레임 인코딩/디코딩 테스트"""

import json

import pytest

from diff_digest.domain.notes.sse import (
    DELTA_EVENT,
    SSEFrameDecoder,
    format_sse_frame,
    parse_data_frame,
)


class TestFormatSseFrame:
    """format_sse_frame 함수 테스트"""

    def test_frame_shape(self):
        """data: 접두사와 빈 줄 구분자"""
        frame = format_sse_frame(DELTA_EVENT, {"delta": "abc"})

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[6:]) == {"event": DELTA_EVENT, "data": {"delta": "abc"}}

    def test_newlines_in_payload_are_escaped(self):
        """페이로드의 줄바꿈이 프레임을 깨뜨리지 않음"""
        frame = format_sse_frame(DELTA_EVENT, {"delta": "a\n\nb"})

        assert frame.count("\n\n") == 1


class TestSseFrameDecoder:
    """SSEFrameDecoder 테스트"""

    def test_holds_incomplete_frame(self):
        """미완성 프레임은 다음 청크까지 보관"""
        decoder = SSEFrameDecoder()

        assert decoder.feed("data: {\"a\"") == []
        assert decoder.pending == 'data: {"a"'
        assert decoder.feed(": 1}\n\ndata: 2") == ['data: {"a": 1}']
        assert decoder.pending == "data: 2"

    def test_frame_split_across_delimiter(self):
        """구분자가 청크 경계에 걸친 경우"""
        decoder = SSEFrameDecoder()

        assert decoder.feed("data: 1\n") == []
        assert decoder.feed("\ndata: 2\n\n") == ["data: 1", "data: 2"]
        assert decoder.pending == ""

    def test_chunking_does_not_change_frames(self):
        """청크 크기와 무관하게 같은 프레임 복원"""
        body = "".join(format_sse_frame(DELTA_EVENT, {"delta": str(i)}) for i in range(5))

        whole = SSEFrameDecoder().feed(body)

        decoder = SSEFrameDecoder()
        chunked = []
        for i in range(0, len(body), 3):
            chunked.extend(decoder.feed(body[i : i + 3]))

        assert chunked == whole
        assert len(whole) == 5


class TestParseDataFrame:
    """parse_data_frame 함수 테스트"""

    def test_data_frame(self):
        assert parse_data_frame('data: {"event": "x", "data": {}}') == {"event": "x", "data": {}}

    @pytest.mark.parametrize("frame", [": keep-alive", "event: ping", ""])
    def test_non_data_frame(self, frame):
        """data 프레임이 아니면 None"""
        assert parse_data_frame(frame) is None

    def test_non_object_envelope(self):
        assert parse_data_frame("data: [1, 2]") is None

    def test_malformed_envelope_raises(self):
        with pytest.raises(json.JSONDecodeError):
            parse_data_frame("data: {broken")
