"""diff_digest/main.py 테스트"""

from unittest.mock import patch

import pytest

from diff_digest.core.limiter import limiter
from diff_digest.main import app


class TestHealthCheck:
    """헬스체크 엔드포인트 테스트"""

    @pytest.mark.asyncio
    async def test_health_check_returns_up(self, async_client):
        """헬스체크 엔드포인트가 정상 응답을 반환"""
        async with async_client as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "UP"}

    @pytest.mark.asyncio
    async def test_request_id_header(self, async_client):
        """API 응답에 X-Request-ID 헤더 추가"""
        async with async_client as client:
            response = await client.get("/api/v1/unknown", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"


class TestRequestLoggingMiddleware:
    """RequestLoggingMiddleware 테스트"""

    @pytest.mark.asyncio
    async def test_logs_diff_id_and_streaming(self, async_client, make_event_stream):
        """노트 스트림 요청 완료 로그에 diff_id와 streaming 여부 기록"""
        limiter.reset()
        payload = {"id": "42", "description": "d", "diff": "+x"}

        with (
            patch(
                "diff_digest.api.v1.notes.stream_note_events",
                make_event_stream([("response.created", {})]),
            ),
            patch("diff_digest.core.middleware.logger") as mock_logger,
        ):
            async with async_client as client:
                response = await client.post("/api/v1/generate-notes", json=payload)

        assert response.status_code == 200
        completed = [c for c in mock_logger.info.call_args_list if c.args[0] == "요청 완료"]
        assert completed[0].kwargs["diff_id"] == "42"
        assert completed[0].kwargs["streaming"] is True

    @pytest.mark.asyncio
    async def test_health_is_not_logged(self, async_client):
        with patch("diff_digest.core.middleware.logger") as mock_logger:
            async with async_client as client:
                response = await client.get("/health")

        assert "X-Request-ID" not in response.headers
        mock_logger.info.assert_not_called()


class TestAppConfiguration:
    """앱 설정 테스트"""

    def test_app_has_correct_title(self):
        assert app.title == "Diff Digest"

    def test_app_has_correct_version(self):
        assert app.version == "1.0.0"

    def test_routes_are_included(self):
        """API 라우터가 포함됨"""
        paths = app.openapi()["paths"]
        assert "/health" in paths
        assert "/api/v1/diffs" in paths
        assert "/api/v1/generate-notes" in paths
        assert "/api/v1/generate-notes/sync" in paths
