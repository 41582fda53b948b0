import httpx
from fastapi import APIRouter, Query

from diff_digest.core.config import settings
from diff_digest.core.exceptions import GitHubAPIError
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import DiffPage
from diff_digest.domain.notes.service import fetch_diff_page

router = APIRouter(tags=["diffs"])
logger = get_logger(__name__)


@router.get("/diffs", response_model=DiffPage)
async def list_diffs(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.diffs_per_page, ge=1, le=100),
) -> DiffPage:
    try:
        return await fetch_diff_page(page=page, per_page=per_page)

    except httpx.HTTPStatusError as e:
        status_code = e.response.status_code
        logger.error("diff 목록 조회 HTTP 오류 status=%d page=%d", status_code, page)
        raise GitHubAPIError(status_code=status_code, detail=f"GitHub API 오류: HTTP {status_code}") from e

    except httpx.RequestError as e:
        logger.error("diff 목록 조회 요청 실패 error=%s page=%d", type(e).__name__, page)
        raise GitHubAPIError(detail=f"GitHub 요청 실패: {type(e).__name__}") from e

    except ValueError as e:
        logger.error("diff 목록 조회 설정 오류 error=%s", e)
        raise GitHubAPIError(detail=str(e)) from e
