"""
요청 및 노트 생성 컨텍스트 관리 모듈

contextvars를 사용하여 비동기 환경에서도 안전하게 request_id와 diff_id를 관리
"""

import uuid
from contextvars import ContextVar

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
diff_id_var: ContextVar[str | None] = ContextVar("diff_id", default=None)


def get_request_id() -> str | None:
    """현재 컨텍스트의 request_id 반환"""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """
    request_id 설정

    인자가 없으면 8자리 UUID 자동 생성
    """
    if request_id is None:
        request_id = uuid.uuid4().hex[:8]
    request_id_var.set(request_id)
    return request_id


def get_diff_id() -> str | None:
    """현재 컨텍스트의 diff_id 반환"""
    return diff_id_var.get()


def set_diff_id(diff_id: str | None) -> None:
    """노트를 생성 중인 diff_id 설정"""
    diff_id_var.set(diff_id)


def clear_context() -> None:
    """모든 컨텍스트 변수 초기화"""
    request_id_var.set(None)
    diff_id_var.set(None)
