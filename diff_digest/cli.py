"""CLI entry point for Diff Digest."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from diff_digest.client.cache import write_cache_control
from diff_digest.client.session import DigestSession
from diff_digest.core.config import settings
from diff_digest.core.logging import setup_logging
from diff_digest.domain.notes.schemas import BatchSummary, DiffItem, NoteEntry

app = typer.Typer(help="Merged PR diff에서 릴리스 노트를 생성합니다.", no_args_is_help=True)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="바인딩 호스트"),
    port: int = typer.Option(8000, help="바인딩 포트"),
    reload: bool = typer.Option(False, "--reload", help="코드 변경 시 재시작"),
) -> None:
    """API 서버 실행."""
    uvicorn.run("diff_digest.main:app", host=host, port=port, reload=reload, log_config=None)


@app.command()
def digest(
    pages: int = typer.Option(1, min=1, help="가져올 diff 페이지 수"),
    per_page: Optional[int] = typer.Option(None, "--per-page", min=1, max=100),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="API 서버 주소"),
) -> None:
    """diff 목록을 가져와 노트를 일괄 생성하고 출력."""
    setup_logging()
    summary = asyncio.run(async_digest(pages, per_page, base_url))
    if summary is None:
        raise typer.Exit(code=1)


@app.command("clear-cache")
def clear_cache(
    path: Optional[Path] = typer.Option(None, help="캐시 제어 파일 경로"),
) -> None:
    """다음 실행 시 노트 캐시를 비우도록 캐시 제어 파일 생성."""
    setup_logging()
    target = path or settings.cache_control_path
    write_cache_control(target)
    typer.echo(f"✅ 캐시 제어 파일 생성: {target}")


async def async_digest(
    pages: int,
    per_page: Optional[int],
    base_url: Optional[str],
) -> BatchSummary | None:
    async with DigestSession(base_url=base_url) as session:
        if per_page:
            session.pager.per_page = per_page

        await session.pager.fetch(1)
        for _ in range(pages - 1):
            if session.pager.next_page is None or session.pager.error:
                break
            await session.pager.load_more()

        if session.pager.error:
            typer.echo(f"오류: {session.pager.error}", err=True)
            return None
        if not session.pager.diffs:
            typer.echo("merge된 PR이 없습니다.")
            return BatchSummary()

        summary = await session.batch.process_all(session.pager.diffs)

        for item in session.pager.diffs:
            _print_item(item, session.store.get(item.id))

        if summary is not None:
            typer.echo(
                f"\n생성 {summary.generated} / 건너뜀 {summary.skipped} / 실패 {summary.failed}"
            )
        return summary


def _print_item(item: DiffItem, entry: NoteEntry) -> None:
    typer.echo(f"\nPR #{item.id}: {item.description}")
    typer.echo(f"  {item.url}")

    if entry.error_message:
        typer.echo(f"  오류: {entry.error_message}")
        return
    if entry.data is None:
        typer.echo("  노트 없음")
        return

    typer.echo(f"  Developer: {entry.data.developer_note or '(생성된 개발자 노트 없음)'}")
    typer.echo(f"  Marketing: {entry.data.marketing_note or '(생성된 마케팅 노트 없음)'}")


if __name__ == "__main__":
    app()
