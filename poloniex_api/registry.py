"""심볼/채널 레지스트리 - 페어 이름 ↔ 마켓 ID 양방향 매핑"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from poloniex_api.errors import ChannelError

logger = logging.getLogger(__name__)

# 예약된 제어 채널
RESERVED_CHANNELS = {
    "1001": "trollbox",
    "1002": "ticker",
    "1003": "footer",
    "1010": "heartbeat",
}


class SymbolRegistry:
    """부트스트랩 이후 읽기 전용. by_name과 by_id는 항상 서로의 역매핑"""

    def __init__(self, by_name: Mapping[str, str]):
        names = dict(by_name)
        ids = {v: k for k, v in names.items()}
        if len(ids) != len(names):
            raise ValueError("마켓 ID 중복: 역매핑 불가")
        self._by_name = MappingProxyType(names)
        self._by_id = MappingProxyType(ids)

    @classmethod
    def from_markets(cls, markets: Mapping[str, int]) -> "SymbolRegistry":
        """{페어: 숫자 ID} 에 예약 채널을 덮어씌워 생성"""
        by_name = {name: "%d" % market_id for name, market_id in markets.items()}
        # 예약 채널과 겹치는 기존 항목 제거 (역매핑 유지)
        by_name = {k: v for k, v in by_name.items()
                   if v not in RESERVED_CHANNELS and k not in RESERVED_CHANNELS.values()}
        for channel_id, name in RESERVED_CHANNELS.items():
            by_name[name] = channel_id
        logger.info(f"[레지스트리] 마켓 {len(by_name) - len(RESERVED_CHANNELS)}개 로드")
        return cls(by_name)

    @property
    def by_name(self) -> Mapping[str, str]:
        return self._by_name

    @property
    def by_id(self) -> Mapping[str, str]:
        return self._by_id

    @property
    def ticker_channel(self) -> str:
        return self._by_name["ticker"]

    def resolve(self, token: str) -> str:
        """토큰 → 채널 ID. 이름 먼저, 그다음 ID. 둘 다 아니면 ChannelError"""
        token = str(token)
        if token in self._by_name:
            return self._by_name[token]
        if token in self._by_id:
            return token
        raise ChannelError(f"unrecognised channel: {token}")

    def pair_for(self, market_id) -> str | None:
        return self._by_id.get(str(market_id))

    def id_for(self, name: str) -> str | None:
        return self._by_name.get(name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, token) -> bool:
        token = str(token)
        return token in self._by_name or token in self._by_id
