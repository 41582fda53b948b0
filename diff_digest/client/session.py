import httpx

from diff_digest.client.batch import BatchProcessor
from diff_digest.client.cache import LocalNotesCache
from diff_digest.client.generator import NoteGenerator
from diff_digest.client.pager import DiffPager
from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import NotesState
from diff_digest.domain.notes.store import CacheLoaded, NotesStore

logger = get_logger(__name__)


class DigestSession:
    """diff 페이저, 노트 스토어, 로컬 캐시, 일괄 생성기 연결

    start()에서 캐시 제어 파일을 반영하고 캐시 노트를 스토어에 채운 뒤,
    이후 노트 변경마다 캐시에 저장한다.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        cache: LocalNotesCache | None = None,
        batch_delay_seconds: float | None = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=settings.client_timeout,
        )
        self.store = NotesStore()
        self.cache = cache or LocalNotesCache()
        self.pager = DiffPager(self.client)
        self.generator = NoteGenerator(self.store, self.client)
        self.batch = BatchProcessor(
            self.store,
            self.generator.generate,
            delay_seconds=batch_delay_seconds,
        )
        self._unsubscribe = None

    def start(self) -> None:
        self.cache.apply_cache_control()
        cached = self.cache.load()
        self.store.dispatch(CacheLoaded(entries=cached))
        self._unsubscribe = self.store.subscribe(self._persist)
        logger.info("세션 시작 cached=%d", len(cached))

    def _persist(self, state: NotesState) -> None:
        self.cache.save(state["notes"])

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "DigestSession":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
