import os
from collections.abc import AsyncIterator

from langchain_core.messages import HumanMessage, SystemMessage
from langfuse.langchain import CallbackHandler

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.prompts import (
    DIFF_TRUNCATED_MARKER,
    RELEASE_NOTES_HUMAN,
    RELEASE_NOTES_SYSTEM,
)
from diff_digest.domain.notes.schemas import GeneratedNotes
from diff_digest.infra.llm.factory import get_notes_client

logger = get_logger(__name__)

if settings.langfuse_public_key:
    os.environ["LANGFUSE_PUBLIC_KEY"] = settings.langfuse_public_key
if settings.langfuse_secret_key:
    os.environ["LANGFUSE_SECRET_KEY"] = settings.langfuse_secret_key
if settings.langfuse_base_url:
    os.environ["LANGFUSE_HOST"] = settings.langfuse_base_url


def get_langfuse_handler() -> CallbackHandler | None:
    """Langfuse 콜백 핸들러 반환"""
    if not settings.langfuse_public_key or not settings.langfuse_secret_key:
        return None

    return CallbackHandler()


def truncate_diff(diff: str, max_length: int | None = None) -> str:
    """프롬프트 길이 제한을 넘는 diff 절단"""
    if max_length is None:
        max_length = settings.diff_max_length_prompt
    if len(diff) <= max_length:
        return diff
    return diff[:max_length] + DIFF_TRUNCATED_MARKER


def format_notes_input(description: str, diff: str) -> str:
    """PR 설명과 diff를 사용자 메시지로 포맷"""
    return RELEASE_NOTES_HUMAN.format(description=description, diff=truncate_diff(diff))


def build_response_input(description: str, diff: str) -> list[dict[str, str]]:
    """Responses API input 메시지 목록 생성"""
    return [
        {"role": "system", "content": RELEASE_NOTES_SYSTEM},
        {"role": "user", "content": format_notes_input(description, diff)},
    ]


async def stream_note_events(
    description: str,
    diff: str,
) -> AsyncIterator[tuple[str, dict]]:
    """Responses API 스트리밍으로 노트 생성, 모델 이벤트를 그대로 반환

    Yields:
        (이벤트 타입, 이벤트 페이로드) 튜플
    """
    client = get_notes_client()
    openai_client = client.get_async_client()

    logger.debug("노트 스트리밍 요청 model=%s", client.get_model_name())

    async with openai_client.responses.stream(
        model=client.get_model_name(),
        input=build_response_input(description, diff),
        text_format=GeneratedNotes,
    ) as stream:
        async for event in stream:
            yield event.type, event.model_dump(mode="json", warnings=False)


async def generate_release_notes(
    description: str,
    diff: str,
    session_id: str | None = None,
) -> GeneratedNotes:
    """스트리밍 없이 노트를 한 번에 생성"""
    logger.debug("노트 생성 요청 diff_length=%d", len(diff))

    langfuse_handler = get_langfuse_handler()
    config = {
        "callbacks": [langfuse_handler] if langfuse_handler else [],
        "metadata": {
            "langfuse_session_id": session_id,
            "langfuse_tags": ["release-notes", "generate"],
        },
    }

    llm = get_notes_client().with_structured_output(GeneratedNotes)
    messages = [
        SystemMessage(content=RELEASE_NOTES_SYSTEM),
        HumanMessage(content=format_notes_input(description, diff)),
    ]
    result = await llm.ainvoke(messages, config=config)

    logger.debug(
        "노트 생성 완료 developer=%d marketing=%d",
        len(result.developer_note),
        len(result.marketing_note),
    )
    return result
