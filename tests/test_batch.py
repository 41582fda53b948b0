"""BatchProcessor 테스트"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from diff_digest.client.batch import BatchProcessor
from diff_digest.domain.notes.store import (
    CacheLoaded,
    GenerationCompleted,
    GenerationFailed,
    GenerationStarted,
)


def _completing_generator(store, sample_notes, calls: list):
    """호출 순서를 기록하고 노트를 완료시키는 가짜 생성 함수"""

    async def _generate(item):
        calls.append(item.id)
        store.dispatch(GenerationStarted(diff_id=item.id))
        store.dispatch(GenerationCompleted(diff_id=item.id, notes=sample_notes))

    return _generate


class TestProcessAll:
    """process_all 테스트"""

    @pytest.mark.asyncio
    async def test_processes_in_order_with_delay(self, notes_store, sample_diff_items, sample_notes):
        """순서대로 생성하고 각 생성 후 지연"""
        calls = []
        processor = BatchProcessor(
            notes_store, _completing_generator(notes_store, sample_notes, calls), delay_seconds=1.0
        )

        with patch("diff_digest.client.batch.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            summary = await processor.process_all(sample_diff_items)

        assert calls == ["1", "2", "3"]
        assert summary.generated == 3
        assert mock_sleep.await_count == 3
        mock_sleep.assert_awaited_with(1.0)
        assert processor.processing_all is False

    @pytest.mark.asyncio
    async def test_skips_cached(self, notes_store, sample_diff_items, sample_notes):
        """완료된 노트는 건너뜀"""
        notes_store.dispatch(CacheLoaded(entries={"1": sample_notes, "2": sample_notes}))
        generate = AsyncMock()
        processor = BatchProcessor(notes_store, generate, delay_seconds=0)

        summary = await processor.process_all(sample_diff_items)

        generate.assert_awaited_once_with(sample_diff_items[2])
        assert summary.skipped == 2

    @pytest.mark.asyncio
    async def test_rejected_while_manual_generation_loading(self, notes_store, sample_diff_items):
        """개별 생성이 진행 중이면 일괄 처리를 시작하지 않음"""
        notes_store.dispatch(GenerationStarted(diff_id="2"))
        generate = AsyncMock()
        processor = BatchProcessor(notes_store, generate, delay_seconds=0)

        assert await processor.process_all(sample_diff_items) is None

        generate.assert_not_awaited()
        assert processor.processing_all is False

    @pytest.mark.asyncio
    async def test_skips_item_that_started_loading_mid_batch(
        self, notes_store, sample_diff_items, sample_notes
    ):
        """일괄 처리 도중 개별 생성이 시작된 항목은 건너뜀"""
        calls = []

        async def _generate(item):
            calls.append(item.id)
            notes_store.dispatch(GenerationStarted(diff_id=item.id))
            notes_store.dispatch(GenerationCompleted(diff_id=item.id, notes=sample_notes))
            if item.id == "1":
                notes_store.dispatch(GenerationStarted(diff_id="2"))

        processor = BatchProcessor(notes_store, _generate, delay_seconds=0)

        summary = await processor.process_all(sample_diff_items)

        assert calls == ["1", "3"]
        assert summary.skipped == 1

    @pytest.mark.asyncio
    async def test_failed_item_does_not_stop_batch(self, notes_store, sample_diff_items, sample_notes):
        """한 항목 실패가 나머지 처리를 막지 않음"""
        calls = []

        async def _generate(item):
            calls.append(item.id)
            notes_store.dispatch(GenerationStarted(diff_id=item.id))
            if item.id == "1":
                notes_store.dispatch(GenerationFailed(diff_id=item.id, message="boom"))
                return
            if item.id == "2":
                raise RuntimeError("unexpected")
            notes_store.dispatch(GenerationCompleted(diff_id=item.id, notes=sample_notes))

        processor = BatchProcessor(notes_store, _generate, delay_seconds=0)

        summary = await processor.process_all(sample_diff_items)

        assert calls == ["1", "2", "3"]
        assert summary.generated == 1
        assert summary.failed == 2
        assert notes_store.get("3").is_cached

    @pytest.mark.asyncio
    async def test_retries_errored_items(self, notes_store, sample_diff_items, sample_notes):
        """오류 상태 항목은 다시 생성 대상"""
        notes_store.dispatch(GenerationStarted(diff_id="1"))
        notes_store.dispatch(GenerationFailed(diff_id="1", message="boom"))
        calls = []
        processor = BatchProcessor(
            notes_store, _completing_generator(notes_store, sample_notes, calls), delay_seconds=0
        )

        await processor.process_all(sample_diff_items[:1])

        assert calls == ["1"]
        assert notes_store.get("1").is_cached

    @pytest.mark.asyncio
    async def test_overlapping_batch_is_rejected(self, notes_store, sample_diff_items, sample_notes):
        """실행 중인 일괄 처리가 있으면 새 요청은 무시"""
        release = asyncio.Event()
        calls = []

        async def _generate(item):
            calls.append(item.id)
            notes_store.dispatch(GenerationStarted(diff_id=item.id))
            await release.wait()
            notes_store.dispatch(GenerationCompleted(diff_id=item.id, notes=sample_notes))

        processor = BatchProcessor(notes_store, _generate, delay_seconds=0)

        first = asyncio.create_task(processor.process_all(sample_diff_items))
        await asyncio.sleep(0)
        assert processor.processing_all is True

        assert await processor.process_all(sample_diff_items) is None

        release.set()
        summary = await first

        assert calls == ["1", "2", "3"]
        assert summary.generated == 3

    @pytest.mark.asyncio
    async def test_never_runs_same_id_concurrently(self, notes_store, sample_diff_items, sample_notes):
        """한 번에 하나의 생성만 진행"""
        in_flight = []
        max_in_flight = 0

        async def _generate(item):
            nonlocal max_in_flight
            in_flight.append(item.id)
            max_in_flight = max(max_in_flight, len(in_flight))
            notes_store.dispatch(GenerationStarted(diff_id=item.id))
            await asyncio.sleep(0)
            notes_store.dispatch(GenerationCompleted(diff_id=item.id, notes=sample_notes))
            in_flight.remove(item.id)

        processor = BatchProcessor(notes_store, _generate, delay_seconds=0)

        await processor.process_all(sample_diff_items)

        assert max_in_flight == 1

    @pytest.mark.asyncio
    async def test_empty_list(self, notes_store):
        processor = BatchProcessor(notes_store, AsyncMock(), delay_seconds=0)

        assert await processor.process_all([]) is None
