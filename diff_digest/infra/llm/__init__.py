from diff_digest.infra.llm.base import BaseLLMClient
from diff_digest.infra.llm.client import generate_release_notes, stream_note_events
from diff_digest.infra.llm.factory import get_notes_client, reset_clients
from diff_digest.infra.llm.openai_client import OpenAIClient

__all__ = [
    "BaseLLMClient",
    "OpenAIClient",
    "get_notes_client",
    "reset_clients",
    "generate_release_notes",
    "stream_note_events",
]
