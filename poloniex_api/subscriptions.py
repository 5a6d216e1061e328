"""구독 관리 모듈 - 활성 채널 집합 및 subscribe/unsubscribe 제어 프레임 전송"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from poloniex_api.registry import SymbolRegistry

logger = logging.getLogger(__name__)

Sender = Callable[[dict], Awaitable[bool]]


class SubscriptionManager:
    """구독 채널 집합. 전송 실패(미연결) 시에도 집합은 갱신되고, 다음 연결 때 재전송된다"""

    def __init__(self, registry: SymbolRegistry, send: Sender):
        self.registry = registry
        self._send = send
        self._channels: set[str] = set()

    async def subscribe(self, token: str) -> str:
        """토큰(페어 이름 또는 채널 ID) 구독. 해석된 채널 ID 반환"""
        channel = self.registry.resolve(token)
        self._channels.add(channel)
        sent = await self._send(self.subscribe_frame(channel))
        logger.info(f"[구독] {token} → {channel}" + ("" if sent else " (연결 후 전송)"))
        return channel

    async def unsubscribe(self, token: str) -> str:
        channel = self.registry.resolve(token)
        self._channels.discard(channel)
        # 해제도 서버 규약상 "subscribe" 명령으로 보낸다
        await self._send(self.subscribe_frame(channel))
        logger.info(f"[구독 해제] {token} → {channel}")
        return channel

    @staticmethod
    def subscribe_frame(channel: str) -> dict:
        return {"command": "subscribe", "channel": channel}

    def frames(self) -> list[dict]:
        """재연결 시 다시 보낼 subscribe 프레임"""
        return [self.subscribe_frame(c) for c in sorted(self._channels)]

    @property
    def channels(self) -> frozenset[str]:
        return frozenset(self._channels)

    def __contains__(self, token) -> bool:
        return str(token) in self._channels

    def __len__(self) -> int:
        return len(self._channels)
