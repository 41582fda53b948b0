import asyncio
from collections.abc import Awaitable, Callable, Sequence

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import BatchSummary, DiffItem
from diff_digest.domain.notes.store import NotesStore

logger = get_logger(__name__)

GenerateFn = Callable[[DiffItem], Awaitable[object]]


class BatchProcessor:
    """diff 목록의 노트를 순서대로 하나씩 생성

    병렬 처리하지 않고 생성 요청 사이마다 고정 지연을 둔다.
    """

    def __init__(
        self,
        store: NotesStore,
        generate: GenerateFn,
        delay_seconds: float | None = None,
    ):
        self._store = store
        self._generate = generate
        self._delay_seconds = (
            settings.batch_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.processing_all = False

    async def process_all(self, diffs: Sequence[DiffItem]) -> BatchSummary | None:
        """전체 diff 노트 생성

        생성 중인 노트나 실행 중인 일괄 처리가 있으면 None. 빈 목록도 None
        """
        if self.processing_all or not diffs or self._store.any_loading():
            return None

        self.processing_all = True
        summary = BatchSummary()
        logger.info("일괄 노트 생성 시작 total=%d", len(diffs))

        try:
            for item in diffs:
                entry = self._store.get(item.id)
                if entry.is_cached:
                    logger.debug("캐시된 노트 건너뜀", diff_id=item.id)
                    summary.skipped += 1
                    continue
                if entry.is_loading:
                    summary.skipped += 1
                    continue

                try:
                    await self._generate(item)
                except Exception as e:
                    logger.error("노트 생성 중 예외", diff_id=item.id, error=str(e), exc_info=True)

                if self._store.get(item.id).is_cached:
                    summary.generated += 1
                else:
                    summary.failed += 1

                await asyncio.sleep(self._delay_seconds)
        finally:
            self.processing_all = False

        logger.info(
            "일괄 노트 생성 완료 generated=%d skipped=%d failed=%d",
            summary.generated,
            summary.skipped,
            summary.failed,
        )
        return summary
