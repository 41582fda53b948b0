import asyncio
import re

import httpx

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger

logger = get_logger(__name__)

GITHUB_API_BASE = "https://api.github.com"

GITHUB_URL_PATTERN = re.compile(r"github\.com/([a-zA-Z0-9_.-]+)/([a-zA-Z0-9_.-]+)")

JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"

_client = httpx.AsyncClient(timeout=settings.github_timeout)
_request_semaphore = asyncio.Semaphore(settings.github_max_concurrent_requests)


def _get_headers(token: str | None = None, accept: str = JSON_MEDIA_TYPE) -> dict[str, str]:
    """GitHub API 요청 헤더 생성

    Args:
        token: GitHub 토큰
        accept: 응답 미디어 타입

    Returns:
        HTTP 헤더 딕셔너리
    """
    headers = {"Accept": accept}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def close_client():
    """httpx 클라이언트 종료"""
    await _client.aclose()


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """GitHub URL에서 owner와 repo 추출

    Args:
        repo_url: GitHub 레포지토리 URL

    Returns:
        owner, repo 튜플

    Raises:
        ValueError: 유효하지 않은 GitHub URL인 경우
    """
    match = GITHUB_URL_PATTERN.search(repo_url)
    if not match:
        raise ValueError(f"유효하지 않은 GitHub URL: {repo_url}")
    owner = match.group(1)
    repo = match.group(2).removesuffix(".git")
    return owner, repo


async def get_merged_pulls_page(
    repo_url: str,
    page: int = 1,
    per_page: int = 10,
    token: str | None = None,
) -> tuple[list[dict], int | None]:
    """닫힌 PR 한 페이지를 조회해서 merge된 PR만 반환

    Args:
        repo_url: GitHub 레포지토리 URL
        page: 1부터 시작하는 페이지 번호
        per_page: 페이지 크기
        token: GitHub 토큰

    Returns:
        merge된 PR 원본 목록, 다음 페이지 번호 (없으면 None)
    """
    owner, repo = parse_repo_url(repo_url)
    url = f"{GITHUB_API_BASE}/repos/{owner}/{repo}/pulls"

    params = {
        "state": "closed",
        "sort": "updated",
        "direction": "desc",
        "page": page,
        "per_page": min(per_page, 100),
    }

    response = await _client.get(url, headers=_get_headers(token), params=params)
    response.raise_for_status()
    data = response.json()

    merged = [pr for pr in data if pr.get("merged_at")]
    next_page = page + 1 if "next" in response.links else None

    logger.info(
        "PR 페이지 조회 완료 repo=%s/%s page=%d merged=%d/%d",
        owner,
        repo,
        page,
        len(merged),
        len(data),
    )
    return merged, next_page


async def get_pull_diff(repo_url: str, pull_number: int, token: str | None = None) -> str:
    """PR의 unified diff 텍스트 조회

    Args:
        repo_url: GitHub 레포지토리 URL
        pull_number: PR 번호
        token: GitHub 토큰

    Returns:
        diff 원문
    """
    owner, repo = parse_repo_url(repo_url)
    url = f"{GITHUB_API_BASE}/repos/{owner}/{repo}/pulls/{pull_number}"

    async with _request_semaphore:
        response = await _client.get(url, headers=_get_headers(token, accept=DIFF_MEDIA_TYPE))
    response.raise_for_status()

    logger.debug("PR diff 조회 완료 repo=%s/%s pr=%d", owner, repo, pull_number)
    return response.text
