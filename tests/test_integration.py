"""통합 테스트
클라이언트 부트스트랩 → 구독 → 스트림 수신 → 이벤트 디스패치 흐름 검증
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from poloniex_api.client import Poloniex
from poloniex_api.config import Config
from poloniex_api.errors import BootstrapError, ChannelError, PoloniexError

TICKER_BODY = json.dumps({
    "USDT_BTC": {"id": 121, "last": "0.01", "lowestAsk": "0.011", "highestBid": "0.009",
                 "percentChange": "0.05", "baseVolume": "10", "quoteVolume": "1000",
                 "isFrozen": "0", "high24hr": "0.012", "low24hr": "0.008"},
    "BTC_ETH": {"id": 148, "last": "0.02", "lowestAsk": "0.021", "highestBid": "0.019",
                "percentChange": "-0.01", "baseVolume": "5", "quoteVolume": "250",
                "isFrozen": "0", "high24hr": "0.022", "low24hr": "0.018"},
})


def make_session(body=TICKER_BODY, error=None):
    def respond(*args, **kwargs):
        if error is not None:
            raise error
        resp = MagicMock()
        resp.status = 200
        resp.text = AsyncMock(return_value=body)
        resp.__aenter__ = AsyncMock(return_value=resp)
        resp.__aexit__ = AsyncMock(return_value=False)
        return resp

    session = MagicMock()
    session.get = MagicMock(side_effect=respond)
    session.post = MagicMock(side_effect=respond)
    session.close = AsyncMock()
    return session


class FakeWebSocket:
    def __init__(self, frames, done):
        self.frames = frames
        self.done = done
        self.sent = []

    async def send(self, data):
        self.sent.append(json.loads(data))

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for frame in self.frames:
            yield frame
        self.done.set()
        await asyncio.Event().wait()


class FakeConnection:
    def __init__(self, ws):
        self.ws = ws

    async def __aenter__(self):
        return self.ws

    async def __aexit__(self, *exc):
        return False


class TestBootstrap:

    def test_start_builds_registry(self):
        session = make_session()

        async def run():
            with patch("aiohttp.ClientSession", return_value=session):
                polo = Poloniex.public_only()
                await polo.start()
                return polo

        polo = asyncio.run(run())
        assert polo.registry.by_name["USDT_BTC"] == "121"
        assert polo.registry.by_id["148"] == "BTC_ETH"
        assert polo.registry.ticker_channel == "1002"
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"command": "returnTicker"}

    def test_server_error_is_bootstrap_error(self):
        session = make_session('{"error": "Please do not make more than 6 API calls per second."}')

        async def run():
            with patch("aiohttp.ClientSession", return_value=session):
                await Poloniex.public_only().start()

        with pytest.raises(BootstrapError):
            asyncio.run(run())

    def test_markets_without_ids_is_bootstrap_error(self):
        """id 누락 → 모두 0 으로 겹침 → 레지스트리 생성 불가"""
        session = make_session('{"USDT_BTC": {"last": "1"}, "BTC_ETH": {"last": "2"}}')

        async def run():
            with patch("aiohttp.ClientSession", return_value=session):
                polo = Poloniex.public_only()
                try:
                    await polo.start()
                finally:
                    assert polo.registry is None

        with pytest.raises(BootstrapError):
            asyncio.run(run())

    def test_duplicate_market_ids_is_bootstrap_error(self):
        session = make_session('{"USDT_BTC": {"id": 121}, "BTC_ETH": {"id": 121}}')

        async def run():
            with patch("aiohttp.ClientSession", return_value=session):
                await Poloniex.public_only().start()

        with pytest.raises(BootstrapError):
            asyncio.run(run())

    def test_transport_error_is_bootstrap_error(self):
        session = make_session(error=aiohttp.ClientConnectionError("no route"))

        async def run():
            with patch("aiohttp.ClientSession", return_value=session):
                async with Poloniex.public_only():
                    pass

        with pytest.raises(BootstrapError):
            asyncio.run(run())
        session.close.assert_awaited_once()

    def test_stream_requires_start(self):
        polo = Poloniex.public_only()
        with pytest.raises(PoloniexError):
            asyncio.run(polo.subscribe("ticker"))
        with pytest.raises(PoloniexError):
            polo.subscriptions

    def test_public_only_cannot_trade(self):
        polo = Poloniex.public_only(Config(key="k", secret="s"))
        with pytest.raises(PoloniexError):
            asyncio.run(polo.balances())

    def test_from_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"key": "K", "secret": "S"}', encoding="utf-8")
        polo = Poloniex.from_config(str(path))
        assert polo.config.key == "K"
        assert polo.rest.signer is not None

    def test_debug_toggle(self):
        polo = Poloniex("k", "s")
        assert polo.rest.debug is False
        polo.debug()
        assert polo.rest.debug is True


class TestStreamFlow:

    def test_subscribe_stream_and_dispatch(self):
        session = make_session()
        deltas, tickers = [], []

        async def run():
            done = asyncio.Event()
            ws = FakeWebSocket([
                '[1002,null,[121,"0.01","0.011","0.009","0.05","10","1000",0,"0.012","0.008"]]',
                '[148,99,[["o",1,"0.5","0.0"],["t","1",0,"0.5","2",1500000000]]]',
                "[1010]",
            ], done)
            with patch("aiohttp.ClientSession", return_value=session), \
                    patch("websockets.connect", return_value=FakeConnection(ws)):
                async with Poloniex.public_only() as polo:
                    polo.on_ticker(tickers.append)
                    polo.on_orderbook("BTC_ETH", deltas.append)
                    await polo.subscribe("ticker")
                    await polo.subscribe("BTC_ETH")
                    with pytest.raises(ChannelError):
                        await polo.subscribe("NOPE_NOPE")
                    assert polo.subscriptions == frozenset({"1002", "148"})

                    polo.start_stream()
                    await asyncio.wait_for(done.wait(), timeout=5)
                    stats = polo.stats.get_stats()
                    task = polo._stream_task
            return ws, stats, task

        ws, stats, task = asyncio.run(run())
        assert ws.sent == [
            {"command": "subscribe", "channel": "1002"},
            {"command": "subscribe", "channel": "148"},
        ]
        assert [t.pair for t in tickers] == ["USDT_BTC"]
        assert [(d.event, d.type) for d in deltas] == [("remove", "bid"), ("trade", "sell")]
        assert stats["message_counts"] == {"1002": 1, "148": 1, "1010": 1}
        assert task.cancelled()
        session.close.assert_awaited_once()

    def test_filtered_orderbook_listener(self):
        polo = Poloniex.public_only()
        trades = []
        polo.on_orderbook("BTC_ETH", trades.append, event="trade")
        assert polo.emitter.events() == ["BTC_ETH-trade"]

    def test_idle_invokes_callbacks(self):
        ticks = []

        async def run():
            polo = Poloniex.public_only()
            task = asyncio.create_task(polo.idle(0.01, ticks.append))
            while len(ticks) < 2:
                await asyncio.sleep(0.01)
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        asyncio.run(asyncio.wait_for(run(), timeout=5))
        assert len(ticks) >= 2
