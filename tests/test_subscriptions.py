"""SubscriptionManager 테스트 - 채널 해석, 제어 프레임, 재연결 재전송 목록"""

import asyncio

import pytest

from poloniex_api.errors import ChannelError
from poloniex_api.registry import SymbolRegistry
from poloniex_api.subscriptions import SubscriptionManager


class RecordingSender:
    def __init__(self, connected=True):
        self.connected = connected
        self.frames = []

    async def __call__(self, frame):
        self.frames.append(frame)
        return self.connected


@pytest.fixture
def registry():
    return SymbolRegistry.from_markets({"BTC_ETH": 148, "USDT_BTC": 121})


class TestSubscribe:

    def test_subscribe_by_name_sends_frame(self, registry):
        sender = RecordingSender()
        subs = SubscriptionManager(registry, sender)
        channel = asyncio.run(subs.subscribe("BTC_ETH"))
        assert channel == "148"
        assert sender.frames == [{"command": "subscribe", "channel": "148"}]
        assert "148" in subs
        assert len(subs) == 1

    def test_subscribe_by_id(self, registry):
        subs = SubscriptionManager(registry, RecordingSender())
        assert asyncio.run(subs.subscribe("1002")) == "1002"
        assert subs.channels == frozenset({"1002"})

    def test_unknown_channel_rejected_without_io(self, registry):
        sender = RecordingSender()
        subs = SubscriptionManager(registry, sender)
        with pytest.raises(ChannelError):
            asyncio.run(subs.subscribe("FOO_BAR"))
        assert sender.frames == []
        assert len(subs) == 0

    def test_subscribe_twice_is_single_channel(self, registry):
        subs = SubscriptionManager(registry, RecordingSender())

        async def run():
            await subs.subscribe("BTC_ETH")
            await subs.subscribe("148")

        asyncio.run(run())
        assert subs.channels == frozenset({"148"})

    def test_disconnected_subscribe_is_kept_for_replay(self, registry):
        subs = SubscriptionManager(registry, RecordingSender(connected=False))

        async def run():
            await subs.subscribe("ticker")
            await subs.subscribe("USDT_BTC")

        asyncio.run(run())
        assert subs.frames() == [
            {"command": "subscribe", "channel": "1002"},
            {"command": "subscribe", "channel": "121"},
        ]


class TestUnsubscribe:

    def test_unsubscribe_sends_subscribe_verb(self, registry):
        """해제 프레임도 command=subscribe, 집합에서는 제거"""
        sender = RecordingSender()
        subs = SubscriptionManager(registry, sender)

        async def run():
            await subs.subscribe("BTC_ETH")
            await subs.unsubscribe("BTC_ETH")

        asyncio.run(run())
        assert sender.frames[-1] == {"command": "subscribe", "channel": "148"}
        assert len(subs) == 0
        assert subs.frames() == []

    def test_unsubscribe_unknown_channel(self, registry):
        subs = SubscriptionManager(registry, RecordingSender())
        with pytest.raises(ChannelError):
            asyncio.run(subs.unsubscribe("NOPE"))
