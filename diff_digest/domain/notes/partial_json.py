"""스트리밍 중인 노트 JSON의 관대한 부분 파싱"""

import json

from diff_digest.domain.notes.schemas import GeneratedNotes

FIELD_MARKERS = ('"developerNote"', '"marketingNote"')


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""


def attempt_partial_parse(buffer: str) -> GeneratedNotes | None:
    """누적된 delta 텍스트를 보정해서 파싱 시도

    닫는 중괄호와 두 필드 이름이 모두 보이기 전에는 시도하지 않는다.
    앞뒤 중괄호가 빠져 있으면 채워 넣고 파싱하며, 실패는 정상적인
    중간 상태이므로 None을 반환한다.

    Args:
        buffer: 지금까지 수신한 delta를 이어 붙인 텍스트

    Returns:
        파싱된 노트 (없는 필드는 빈 문자열), 파싱 불가 시 None
    """
    if "}" not in buffer or not all(marker in buffer for marker in FIELD_MARKERS):
        return None

    repaired = buffer
    if not repaired.startswith("{"):
        repaired = "{" + repaired
    if not repaired.endswith("}"):
        repaired += "}"

    try:
        parsed = json.loads(repaired)
    except json.JSONDecodeError:
        return None

    if not isinstance(parsed, dict):
        return None

    return GeneratedNotes(
        developer_note=_as_text(parsed.get("developerNote")),
        marketing_note=_as_text(parsed.get("marketingNote")),
    )
