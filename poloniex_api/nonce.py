"""nonce 생성 모듈 - 벽시계 나노초로 시드된 단조 증가 카운터"""

from __future__ import annotations

import time


class NonceSource:
    """클라이언트별 nonce 카운터. REST 락 안에서만 next() 호출"""

    def __init__(self, seed: int | None = None):
        self._value = time.time_ns() if seed is None else seed

    def next(self) -> int:
        self._value += 1
        return self._value

    @property
    def current(self) -> int:
        return self._value
