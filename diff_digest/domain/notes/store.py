"""diff별 노트 상태 머신

상태 전이는 `reduce_notes(state, event)` 순수 함수로만 일어나고,
`NotesStore.dispatch`가 이벤트를 하나씩 순서대로 적용한다.

    idle -> loading -> done | error
    done | error -> loading (재생성)
"""

from collections.abc import Callable
from typing import Union

from pydantic import BaseModel, ConfigDict

from diff_digest.domain.notes.partial_json import attempt_partial_parse
from diff_digest.domain.notes.schemas import (
    GeneratedNotes,
    NoteEntry,
    NotesState,
    NoteStatus,
)


class _NoteEvent(BaseModel):
    model_config = ConfigDict(frozen=True)


class GenerationStarted(_NoteEvent):
    diff_id: str


class DeltaReceived(_NoteEvent):
    diff_id: str
    delta: str


class GenerationCompleted(_NoteEvent):
    diff_id: str
    notes: GeneratedNotes


class GenerationFailed(_NoteEvent):
    diff_id: str
    message: str


class CacheLoaded(_NoteEvent):
    entries: dict[str, GeneratedNotes]


NoteEvent = Union[
    GenerationStarted,
    DeltaReceived,
    GenerationCompleted,
    GenerationFailed,
    CacheLoaded,
]

IDLE_ENTRY = NoteEntry()


def initial_state() -> NotesState:
    return {"notes": {}, "buffers": {}}


def _with_note(state: NotesState, diff_id: str, entry: NoteEntry) -> dict[str, NoteEntry]:
    return {**state["notes"], diff_id: entry}


def _without_buffer(state: NotesState, diff_id: str) -> dict[str, str]:
    return {key: value for key, value in state["buffers"].items() if key != diff_id}


def _is_loading(state: NotesState, diff_id: str) -> bool:
    entry = state["notes"].get(diff_id)
    return entry is not None and entry.is_loading


def reduce_notes(state: NotesState, event: NoteEvent) -> NotesState:
    """이전 상태와 이벤트로 새 상태 계산. 입력 상태는 변경하지 않는다"""
    if isinstance(event, GenerationStarted):
        return {
            "notes": _with_note(state, event.diff_id, NoteEntry(status=NoteStatus.LOADING)),
            "buffers": {**state["buffers"], event.diff_id: ""},
        }

    if isinstance(event, DeltaReceived):
        if not _is_loading(state, event.diff_id):
            return state

        buffer = state["buffers"].get(event.diff_id, "") + event.delta
        buffers = {**state["buffers"], event.diff_id: buffer}

        partial = attempt_partial_parse(buffer)
        if partial is None:
            return {**state, "buffers": buffers}

        # 부분 파싱 결과는 미리보기일 뿐 상태는 loading 유지
        entry = NoteEntry(status=NoteStatus.LOADING, data=partial)
        return {"notes": _with_note(state, event.diff_id, entry), "buffers": buffers}

    if isinstance(event, GenerationCompleted):
        if not _is_loading(state, event.diff_id):
            return state

        entry = NoteEntry(status=NoteStatus.DONE, data=event.notes)
        return {
            "notes": _with_note(state, event.diff_id, entry),
            "buffers": _without_buffer(state, event.diff_id),
        }

    if isinstance(event, GenerationFailed):
        if not _is_loading(state, event.diff_id):
            return state

        entry = NoteEntry(status=NoteStatus.ERROR, error_message=event.message)
        return {
            "notes": _with_note(state, event.diff_id, entry),
            "buffers": _without_buffer(state, event.diff_id),
        }

    if isinstance(event, CacheLoaded):
        seeded = {
            diff_id: NoteEntry(status=NoteStatus.DONE, data=notes)
            for diff_id, notes in event.entries.items()
            if diff_id not in state["notes"]
        }
        if not seeded:
            return state
        return {**state, "notes": {**state["notes"], **seeded}}

    raise TypeError(f"알 수 없는 노트 이벤트: {type(event).__name__}")


Listener = Callable[[NotesState], None]


class NotesStore:
    """노트 상태 저장소

    모든 변경은 dispatch를 거친다. 노트 맵이 바뀐 경우에만 구독자에게 알린다.
    """

    def __init__(self, state: NotesState | None = None):
        self._state = state if state is not None else initial_state()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> NotesState:
        return self._state

    @property
    def notes(self) -> dict[str, NoteEntry]:
        return self._state["notes"]

    def get(self, diff_id: str) -> NoteEntry:
        return self._state["notes"].get(diff_id, IDLE_ENTRY)

    def buffer(self, diff_id: str) -> str | None:
        return self._state["buffers"].get(diff_id)

    def any_loading(self) -> bool:
        return any(entry.is_loading for entry in self._state["notes"].values())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """구독 등록 후 해제 함수 반환"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: NoteEvent) -> NotesState:
        previous = self._state
        self._state = reduce_notes(previous, event)

        if self._state["notes"] is not previous["notes"]:
            for listener in list(self._listeners):
                listener(self._state)

        return self._state
