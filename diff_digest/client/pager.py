import httpx
from pydantic import ValidationError as PydanticValidationError

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import DiffItem, DiffPage

logger = get_logger(__name__)

DIFFS_PATH = "/api/v1/diffs"


def _error_message(response: httpx.Response) -> str:
    """오류 응답 본문의 error/details, 없으면 HTTP 상태"""
    fallback = f"HTTP 오류 status={response.status_code}"
    try:
        body = response.json()
    except ValueError:
        logger.warning("오류 응답 JSON 파싱 실패", status_code=response.status_code)
        return fallback
    if not isinstance(body, dict):
        return fallback
    return body.get("error") or body.get("details") or fallback


class DiffPager:
    """diff 목록 페이지 단위 조회

    첫 페이지는 목록을 교체하고, 이후 페이지는 뒤에 이어 붙인다.
    """

    def __init__(self, client: httpx.AsyncClient, per_page: int | None = None):
        self._client = client
        self.per_page = per_page or settings.diffs_per_page
        self.diffs: list[DiffItem] = []
        self.current_page = 1
        self.next_page: int | None = None
        self.error: str | None = None
        self.is_loading = False
        self.initial_fetch_done = False

    async def fetch(self, page: int = 1) -> list[DiffItem]:
        """페이지 조회 후 현재 목록 반환. 실패 시 error에 메시지 기록"""
        self.is_loading = True
        self.error = None

        try:
            response = await self._client.get(
                DIFFS_PATH, params={"page": page, "per_page": self.per_page}
            )
            if not response.is_success:
                self.error = _error_message(response)
                logger.error("diff 목록 조회 실패", page=page, error=self.error)
                return self.diffs

            result = DiffPage.model_validate(response.json())

        except (httpx.HTTPError, ValueError, PydanticValidationError) as e:
            self.error = str(e) or type(e).__name__
            logger.error("diff 목록 조회 실패", page=page, error=self.error)
            return self.diffs

        finally:
            self.is_loading = False

        self.diffs = result.diffs if page == 1 else [*self.diffs, *result.diffs]
        self.current_page = result.current_page
        self.next_page = result.next_page
        self.initial_fetch_done = True

        logger.info(
            "diff 목록 조회 완료 page=%d count=%d next_page=%s",
            page,
            len(result.diffs),
            result.next_page,
        )
        return self.diffs

    async def refresh(self) -> list[DiffItem]:
        """목록을 비우고 첫 페이지부터 다시 조회. 노트 상태는 유지"""
        self.diffs = []
        return await self.fetch(1)

    async def load_more(self) -> list[DiffItem]:
        if self.next_page is None:
            return self.diffs
        return await self.fetch(self.next_page)
