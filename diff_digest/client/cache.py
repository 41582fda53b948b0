"""
로컬 노트 캐시

브라우저 localStorage처럼 JSON 파일 하나에 키별 값을 저장한다.
노트는 "diffDigestNotes" 키 아래 {diffId: {timestamp, data}} 형식으로 저장되며
TTL(기본 24시간)이 지난 항목은 로드 시 제외된다.
저장소 오류는 로그만 남기고 캐시 없이 동작한다.
"""

import json
import os
import time
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from diff_digest.core.config import settings
from diff_digest.core.logging import get_logger
from diff_digest.domain.notes.schemas import CacheEntry, GeneratedNotes, NoteEntry

logger = get_logger(__name__)

NOTES_STORAGE_KEY = "diffDigestNotes"
CACHE_CONTROL_STORAGE_KEY = "diffDigestCacheControl"
CLEAR_NOTES_ACTION = "clear-notes-cache"

MS_PER_HOUR = 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def write_cache_control(path: Path | None = None) -> dict:
    """다음 클라이언트 실행 시 노트 캐시를 비우도록 하는 신호 파일 생성"""
    path = Path(path or settings.cache_control_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = {"action": CLEAR_NOTES_ACTION, "timestamp": now_ms()}
    path.write_text(json.dumps(payload), encoding="utf-8")

    logger.info("캐시 제어 파일 생성", path=str(path), timestamp=payload["timestamp"])
    return payload


class LocalNotesCache:
    """파일 기반 노트 캐시"""

    def __init__(self, path: Path | None = None, ttl_hours: float | None = None):
        self._path = Path(path or settings.notes_cache_path)
        if ttl_hours is None:
            ttl_hours = settings.notes_cache_ttl_hours
        self._ttl_ms = int(ttl_hours * MS_PER_HOUR)
        self._timestamps: dict[str, int] = {}

    @property
    def path(self) -> Path:
        return self._path

    def _read_storage(self) -> dict:
        if not self._path.exists():
            return {}
        storage = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(storage, dict):
            raise ValueError("저장소 최상위 값이 객체가 아닙니다")
        return storage

    def _read_storage_for_write(self) -> dict:
        """쓰기 전 저장소 로드. 손상된 파일은 빈 저장소로 덮어쓴다"""
        try:
            return self._read_storage()
        except ValueError as e:
            logger.warning("손상된 노트 저장소 초기화", path=str(self._path), error=str(e))
            return {}

    def _write_storage(self, storage: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(storage, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def load(self) -> dict[str, GeneratedNotes]:
        """만료되지 않은 캐시 노트 로드"""
        try:
            raw_entries = self._read_storage().get(NOTES_STORAGE_KEY) or {}
            items = list(raw_entries.items())
        except (OSError, ValueError, AttributeError) as e:
            logger.error("노트 캐시 로드 실패", path=str(self._path), error=str(e))
            return {}

        now = now_ms()
        loaded: dict[str, GeneratedNotes] = {}
        timestamps: dict[str, int] = {}
        expired = 0
        invalid = 0
        for diff_id, raw in items:
            try:
                entry = CacheEntry.model_validate(raw)
            except PydanticValidationError as e:
                invalid += 1
                logger.warning("잘못된 캐시 항목 건너뜀", diff_id=diff_id, error=str(e))
                continue
            if now - entry.timestamp >= self._ttl_ms:
                expired += 1
                continue
            loaded[diff_id] = entry.data
            timestamps[diff_id] = entry.timestamp

        self._timestamps.update(timestamps)
        logger.info("노트 캐시 로드 완료", loaded=len(loaded), expired=expired, invalid=invalid)
        return loaded

    def save(self, notes: Mapping[str, NoteEntry]) -> None:
        """완료된 노트만 저장. timestamp는 처음 저장한 시각을 유지"""
        now = now_ms()
        cached = {
            diff_id: CacheEntry(
                timestamp=self._timestamps.get(diff_id, now),
                data=entry.data,
            )
            for diff_id, entry in notes.items()
            if entry.is_cached
        }

        try:
            storage = self._read_storage_for_write()
            storage[NOTES_STORAGE_KEY] = {
                diff_id: entry.model_dump(by_alias=True) for diff_id, entry in cached.items()
            }
            self._write_storage(storage)
        except (OSError, ValueError) as e:
            logger.error("노트 캐시 저장 실패", path=str(self._path), error=str(e))
            return

        self._timestamps = {diff_id: entry.timestamp for diff_id, entry in cached.items()}

    def clear(self) -> None:
        """저장된 노트 전체 삭제"""
        try:
            storage = self._read_storage_for_write()
            storage.pop(NOTES_STORAGE_KEY, None)
            self._write_storage(storage)
        except (OSError, ValueError) as e:
            logger.error("노트 캐시 삭제 실패", path=str(self._path), error=str(e))
            return

        self._timestamps.clear()
        logger.info("노트 캐시 삭제 완료")

    def apply_cache_control(self, control_path: Path | None = None) -> bool:
        """캐시 제어 파일이 새 삭제 요청이면 캐시를 비움

        Returns:
            캐시를 비웠으면 True
        """
        control_path = Path(control_path or settings.cache_control_path)

        try:
            if not control_path.exists():
                return False
            control = json.loads(control_path.read_text(encoding="utf-8"))
            if not isinstance(control, dict) or control.get("action") != CLEAR_NOTES_ACTION:
                return False

            timestamp = int(control.get("timestamp", 0))
            storage = self._read_storage_for_write()
            if timestamp <= int(storage.get(CACHE_CONTROL_STORAGE_KEY, 0)):
                return False

            storage.pop(NOTES_STORAGE_KEY, None)
            storage[CACHE_CONTROL_STORAGE_KEY] = timestamp
            self._write_storage(storage)

        except (OSError, ValueError, TypeError) as e:
            logger.error("캐시 제어 파일 처리 실패", path=str(control_path), error=str(e))
            return False

        self._timestamps.clear()
        logger.info("캐시 제어 요청으로 노트 캐시 삭제", timestamp=timestamp)
        return True
