from enum import Enum
from typing import TypedDict

from pydantic import BaseModel, ConfigDict, Field


class DiffItem(BaseModel):
    """merged PR diff 항목"""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    diff: str
    url: str


class DiffPage(BaseModel):
    """diff 페이지 응답"""

    model_config = ConfigDict(populate_by_name=True)

    diffs: list[DiffItem]
    next_page: int | None = Field(alias="nextPage")
    current_page: int = Field(alias="currentPage")
    per_page: int = Field(alias="perPage")


class GeneratedNotes(BaseModel):
    """생성된 릴리스 노트. 의미 있는 노트가 없으면 빈 문자열"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    developer_note: str = Field(alias="developerNote")
    marketing_note: str = Field(alias="marketingNote")

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class NoteStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    DONE = "done"


class NoteEntry(BaseModel):
    """diff 하나에 대한 노트 생성 상태"""

    model_config = ConfigDict(frozen=True)

    status: NoteStatus = NoteStatus.IDLE
    error_message: str | None = None
    data: GeneratedNotes | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == NoteStatus.LOADING

    @property
    def is_cached(self) -> bool:
        """오류 없이 완료된 노트 - 재생성 대상이 아님"""
        return (
            self.status == NoteStatus.DONE
            and self.error_message is None
            and self.data is not None
        )


class CacheEntry(BaseModel):
    """로컬 캐시에 저장되는 노트 (timestamp: epoch ms)"""

    timestamp: int
    data: GeneratedNotes


class NotesState(TypedDict):
    """노트 스토어 상태"""

    notes: dict[str, NoteEntry]
    buffers: dict[str, str]


class BatchSummary(BaseModel):
    """일괄 생성 결과 집계"""

    generated: int = 0
    skipped: int = 0
    failed: int = 0
