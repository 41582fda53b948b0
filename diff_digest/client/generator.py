import httpx

from diff_digest.core.exceptions import StreamTransportError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.reconstructor import NotesReconstructor
from diff_digest.domain.notes.schemas import DiffItem, NoteEntry
from diff_digest.domain.notes.store import GenerationFailed, GenerationStarted, NotesStore

logger = get_logger(__name__)

GENERATE_NOTES_PATH = "/api/v1/generate-notes"
DEFAULT_ERROR_MESSAGE = "노트 생성에 실패했습니다"


class NoteGenerator:
    """diff 하나의 노트를 스트리밍으로 생성해서 스토어에 반영"""

    def __init__(self, store: NotesStore, client: httpx.AsyncClient):
        self._store = store
        self._client = client

    async def generate(self, item: DiffItem) -> NoteEntry:
        """노트 생성 후 최종 상태 반환

        이미 완료된 노트가 있거나 생성 중이면 요청하지 않는다.
        """
        entry = self._store.get(item.id)
        if entry.is_cached:
            logger.info("캐시된 노트 사용", diff_id=item.id)
            return entry
        if entry.is_loading:
            logger.info("이미 생성 중인 노트", diff_id=item.id)
            return entry

        self._store.dispatch(GenerationStarted(diff_id=item.id))
        reconstructor = NotesReconstructor(self._store, item.id)

        try:
            await self._stream(item, reconstructor)
        except (httpx.HTTPError, StreamTransportError) as e:
            message = str(e) or DEFAULT_ERROR_MESSAGE
            logger.error("노트 생성 실패", diff_id=item.id, error=message)
            self._store.dispatch(GenerationFailed(diff_id=item.id, message=message))

        return self._store.get(item.id)

    async def _stream(self, item: DiffItem, reconstructor: NotesReconstructor) -> None:
        payload = {"id": item.id, "description": item.description, "diff": item.diff}

        async with self._client.stream("POST", GENERATE_NOTES_PATH, json=payload) as response:
            if not response.is_success:
                raise StreamTransportError(f"HTTP 오류 status={response.status_code}")

            async for chunk in response.aiter_text():
                reconstructor.feed(chunk)

        reconstructor.finish()
