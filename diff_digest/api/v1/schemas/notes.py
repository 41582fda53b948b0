"""릴리스 노트 API 스키마."""

from pydantic import BaseModel, field_validator

REQUIRED_FIELDS = ("id", "description", "diff")


class GenerateNotesRequest(BaseModel):
    """노트 생성 요청. 누락 필드 검증은 라우터에서 400으로 처리."""

    id: str | None = None
    description: str | None = None
    diff: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v: object) -> object:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]
