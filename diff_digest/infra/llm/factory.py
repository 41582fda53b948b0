from diff_digest.core.logging import get_logger
from diff_digest.infra.llm.base import BaseLLMClient
from diff_digest.infra.llm.openai_client import OpenAIClient

logger = get_logger(__name__)

_notes_client: BaseLLMClient | None = None


def get_notes_client() -> BaseLLMClient:
    """릴리스 노트 생성용 LLM 클라이언트 반환"""
    global _notes_client

    if _notes_client is not None:
        return _notes_client

    _notes_client = OpenAIClient()
    logger.info("OpenAI 클라이언트 초기화 model=%s", _notes_client.get_model_name())

    return _notes_client


def reset_clients() -> None:
    """클라이언트 캐시 초기화 - 테스트용"""
    global _notes_client
    _notes_client = None
