"""스트림 통계 모듈 - 채널별 메시지 수, 버려진 프레임, 재연결, 시퀀스 갭"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class StreamStats:
    """WebSocket 스트림 무결성 통계 (메모리 보관)"""

    MAX_GAP_BUFFER = 10000  # 갭 기록 최대 보관 수

    def __init__(self):
        self._gaps: list[dict] = []
        self._reconnects: list[dict] = []
        self._drops: dict[str, int] = defaultdict(int)
        self._message_counts: dict[str, int] = defaultdict(int)

    def record_gap(self, pair: str, expected_seq: int, actual_seq: int,
                   timestamp: float) -> None:
        """오더북 시퀀스 갭 기록"""
        if len(self._gaps) >= self.MAX_GAP_BUFFER:
            self._gaps = self._gaps[-self.MAX_GAP_BUFFER // 2:]
        self._gaps.append({
            "timestamp": timestamp,
            "pair": pair,
            "expected_seq": expected_seq,
            "actual_seq": actual_seq,
        })
        logger.warning(f"[갭] {pair} expected={expected_seq} actual={actual_seq}")

    def record_reconnect(self, timestamp: float, reason: str) -> None:
        self._reconnects.append({
            "timestamp": timestamp,
            "reason": reason,
        })

    def record_drop(self, reason: str) -> None:
        self._drops[reason] += 1

    def increment_message_count(self, channel: str) -> None:
        self._message_counts[channel] += 1

    @property
    def gap_count(self) -> int:
        return len(self._gaps)

    @property
    def reconnect_count(self) -> int:
        return len(self._reconnects)

    def get_stats(self) -> dict:
        """현재 통계 스냅샷"""
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "gaps": list(self._gaps),
            "gap_count": len(self._gaps),
            "reconnect_count": len(self._reconnects),
            "drops": dict(self._drops),
            "message_counts": dict(self._message_counts),
        }

    def reset(self) -> None:
        self._gaps.clear()
        self._reconnects.clear()
        self._drops.clear()
        self._message_counts.clear()
