import asyncio

import httpx

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import DiffItem, DiffPage
from diff_digest.infra.github.client import get_merged_pulls_page, get_pull_diff

logger = get_logger(__name__)


async def _build_diff_item(repo_url: str, pr: dict, token: str | None) -> DiffItem | None:
    """PR 원본 데이터와 diff로 DiffItem 생성. diff 조회 실패 시 None"""
    number = pr["number"]
    try:
        diff = await get_pull_diff(repo_url, number, token)
    except httpx.HTTPStatusError as e:
        logger.warning(
            "PR diff 조회 실패 pr=%d status=%d",
            number,
            e.response.status_code,
        )
        return None
    except httpx.RequestError as e:
        logger.warning("PR diff 조회 실패 pr=%d error=%s", number, type(e).__name__)
        return None

    return DiffItem(
        id=str(number),
        description=pr.get("title") or "",
        diff=diff,
        url=pr.get("html_url") or "",
    )


async def fetch_diff_page(
    page: int = 1,
    per_page: int | None = None,
    repo_url: str | None = None,
    token: str | None = None,
) -> DiffPage:
    """merge된 PR diff 한 페이지 수집

    Args:
        page: 페이지 번호
        per_page: 페이지 크기, 기본값은 설정값
        repo_url: diff를 가져올 레포지토리, 기본값은 설정값
        token: GitHub 토큰, 기본값은 설정값

    Returns:
        DiffPage. diff를 가져오지 못한 PR은 제외
    """
    per_page = per_page or settings.diffs_per_page
    repo_url = repo_url or settings.github_repo_url
    token = token or settings.github_token or None

    pulls, next_page = await get_merged_pulls_page(repo_url, page, per_page, token)

    items = await asyncio.gather(*[_build_diff_item(repo_url, pr, token) for pr in pulls])
    diffs = [item for item in items if item is not None]

    skipped = len(pulls) - len(diffs)
    logger.info("diff 페이지 수집 완료 page=%d diffs=%d skipped=%d", page, len(diffs), skipped)

    return DiffPage(
        diffs=diffs,
        next_page=next_page,
        current_page=page,
        per_page=per_page,
    )
