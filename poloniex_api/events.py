"""이벤트 버스 - 이벤트 이름별 리스너 등록 및 동기 디스패치"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventEmitter:
    """등록 순서대로 호출. emit은 호출한 쪽(스트림 루프)에서 동기로 실행된다"""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> "EventEmitter":
        self._listeners[event].append(listener)
        return self

    def once(self, event: str, listener: Listener) -> "EventEmitter":
        """한 번 호출 후 자동 해제"""
        def wrapper(*args):
            self.off(event, wrapper)
            return listener(*args)
        wrapper.__wrapped__ = listener
        return self.on(event, wrapper)

    def off(self, event: str, listener: Listener) -> "EventEmitter":
        """가장 먼저 등록된 동일 리스너 하나 제거 (once 래퍼 포함)"""
        listeners = self._listeners.get(event)
        if not listeners:
            return self
        for i, registered in enumerate(listeners):
            if registered is listener or getattr(registered, "__wrapped__", None) is listener:
                del listeners[i]
                break
        if not listeners:
            del self._listeners[event]
        return self

    def emit(self, event: str, *args) -> "EventEmitter":
        for listener in list(self._listeners.get(event, ())):
            listener(*args)
        return self

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(event, ()))

    def events(self) -> list[str]:
        return list(self._listeners)

    def clear(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)
