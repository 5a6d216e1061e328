"""WebSocket 스트림 모듈 - 폴로닉스 채널 프레임 수신, 디코딩 및 이벤트 라우팅"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING

import websockets

from poloniex_api.errors import StreamParseError
from poloniex_api.models import WSOrderbook, WSTicker
from poloniex_api.numeric import is_sentinel, to_float, to_int
from poloniex_api.subscriptions import SubscriptionManager

if TYPE_CHECKING:
    from poloniex_api.config import Config
    from poloniex_api.events import EventEmitter
    from poloniex_api.registry import SymbolRegistry
    from poloniex_api.stream_stats import StreamStats

logger = logging.getLogger(__name__)

# 마켓별 오더북 채널 범위 (양끝 제외)
ORDERBOOK_CHANNEL_MIN = 100
ORDERBOOK_CHANNEL_MAX = 1000


def is_orderbook_channel(channel_id: int) -> bool:
    return ORDERBOOK_CHANNEL_MIN < channel_id < ORDERBOOK_CHANNEL_MAX


def parse_ticker(frame: list, registry: SymbolRegistry) -> WSTicker:
    """[1002, null, [pairId, last, ask, bid, change, baseVol, quoteVol, frozen, high, low]]"""
    if len(frame) <= 2 or not isinstance(frame[2], list) or len(frame[2]) < 10:
        raise StreamParseError("cannot parse to ticker")
    (market_id, last, ask, bid, change,
     base_volume, quote_volume, frozen, high, low) = frame[2][:10]

    pair_id = to_int(market_id)
    pair = registry.pair_for(pair_id)
    if pair is None:
        raise StreamParseError(f"cannot parse to ticker - invalid marketID {market_id}")

    return WSTicker(
        pair=pair,
        last=to_float(last),
        ask=to_float(ask),
        bid=to_float(bid),
        percent_change=to_float(change),
        base_volume=to_float(base_volume),
        quote_volume=to_float(quote_volume),
        is_frozen=to_float(frozen) != 0.0,
        daily_high=to_float(high),
        daily_low=to_float(low),
        pair_id=pair_id,
    )


def parse_push_ticker(args: list) -> WSTicker:
    """구형 push 티커 행 디코더 (페어 이름이 들어있는 형식).

    현재 WebSocket 채널은 이 형식을 보내지 않으므로 스트림 루프에 연결되어 있지 않다.
    구형 피드나 저장된 행을 직접 디코딩할 때 쓰는 독립 함수. percent_change는 REST처럼 x100.
    """
    if len(args) < 10:
        raise StreamParseError("cannot parse push ticker")
    (pair, last, ask, bid, change,
     base_volume, quote_volume, frozen, high, low) = args[:10]
    return WSTicker(
        pair=str(pair),
        last=to_float(last),
        ask=to_float(ask),
        bid=to_float(bid),
        percent_change=to_float(change) * 100.0,
        base_volume=to_float(base_volume),
        quote_volume=to_float(quote_volume),
        is_frozen=to_float(frozen) != 0.0,
        daily_high=to_float(high),
        daily_low=to_float(low),
        pair_id=0,
    )


def parse_orderbook(frame: list, registry: SymbolRegistry,
                    now: float | None = None) -> list[WSOrderbook]:
    """[marketId, seq, [["i", ...], ["o", flag, rate, amount], ["t", id, flag, rate, amount, ts]]]

    "i"(초기 스냅샷)는 무시. 델타 순서는 서버 순서 그대로.
    """
    if len(frame) < 3 or not isinstance(frame[2], list):
        raise StreamParseError("cannot parse to orderbook")
    market_id = to_int(frame[0])
    pair = registry.pair_for(market_id)
    if pair is None:
        raise StreamParseError(f"cannot parse to orderbook - invalid marketID {frame[0]}")
    recv_time = time.time() if now is None else now

    deltas = []
    for item in frame[2]:
        if not isinstance(item, list) or not item:
            raise StreamParseError(f"{pair}: 잘못된 델타 {item!r}")
        tag = item[0]
        if tag == "i":
            continue
        elif tag == "o":
            if len(item) < 4:
                raise StreamParseError(f"{pair}: 잘못된 o 델타 {item!r}")
            _, flag, rate, amount = item[:4]
            amount = to_float(amount)
            deltas.append(WSOrderbook(
                pair=pair,
                event="remove" if amount == 0.0 else "modify",
                trade_id=0,
                type="bid" if to_float(flag) == 1.0 else "ask",
                rate=to_float(rate),
                amount=amount,
                total=0.0,
                timestamp=recv_time,
            ))
        elif tag == "t":
            if len(item) < 6:
                raise StreamParseError(f"{pair}: 잘못된 t 델타 {item!r}")
            _, _, flag, rate, amount, ts = item[:6]
            rate = to_float(rate)
            amount = to_float(amount)
            deltas.append(WSOrderbook(
                pair=pair,
                event="trade",
                trade_id=to_int(frame[1]),
                type="buy" if to_float(flag) == 1.0 else "sell",
                rate=rate,
                amount=amount,
                total=rate * amount,
                timestamp=float(to_int(ts)),
            ))
        else:
            logger.debug(f"[스트림] {pair} 알 수 없는 델타 태그 {tag!r}")
    return deltas


class Streamer:
    """폴로닉스 WebSocket 수신기 - 단일 연결, 다중 채널"""

    def __init__(self, config: Config, registry: SymbolRegistry, emitter: EventEmitter,
                 stats: StreamStats | None = None):
        self.config = config
        self.registry = registry
        self.emitter = emitter
        self.stats = stats
        self.subscriptions = SubscriptionManager(registry, self.send)
        self.reconnect_delay = 1.0
        self._ws = None
        self._send_lock = asyncio.Lock()
        self._last_seq: dict[str, int] = {}

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def send(self, message: dict) -> bool:
        """제어 프레임 전송. 미연결이면 False (구독은 연결 시 재전송)"""
        if self._ws is None:
            return False
        async with self._send_lock:
            await self._ws.send(json.dumps(message))
        return True

    async def run(self) -> None:
        """메인 수신 루프 - 끊기면 지수 백오프로 재연결, 취소되면 소켓을 닫고 종료"""
        try:
            while True:
                try:
                    await self._connect_and_stream()
                    reason = "서버가 연결을 닫음"
                except (websockets.WebSocketException, OSError, asyncio.TimeoutError) as e:
                    reason = str(e) or type(e).__name__
                logger.error(f"[에러-스트림] {reason} — {self.reconnect_delay}초 후 재연결...")
                if self.stats:
                    self.stats.record_reconnect(time.time(), reason)
                await asyncio.sleep(self.reconnect_delay)
                self._increase_reconnect_delay()
        finally:
            self._ws = None
            logger.info(f"[스트림] WebSocket 종료 {self.config.ws_url}")

    async def _connect_and_stream(self) -> None:
        async with websockets.connect(self.config.ws_url,
                                      ping_interval=self.config.ping_interval) as ws:
            self._ws = ws
            self._last_seq.clear()
            self._reset_reconnect_delay()
            logger.info(f"[연결] 폴로닉스 WebSocket 연결 성공 ({len(self.subscriptions)}개 채널 재구독)")
            try:
                for frame in self.subscriptions.frames():
                    await self.send(frame)
                async for raw_msg in ws:
                    self.handle_message(raw_msg)
            finally:
                self._ws = None

    def handle_message(self, raw_msg) -> None:
        """수신 프레임 파싱 및 라우팅. 프레임 하나의 실패는 로그 후 버린다"""
        try:
            message = json.loads(raw_msg) if isinstance(raw_msg, (str, bytes)) else raw_msg
        except ValueError as e:
            logger.warning(f"[스트림] JSON 디코딩 실패: {e}")
            self._record_drop("json")
            return
        if not isinstance(message, list) or not message:
            self._record_drop("shape")
            return

        channel_id = to_int(message[0])
        if self.stats:
            self.stats.increment_message_count(str(channel_id))

        try:
            if is_orderbook_channel(channel_id):
                self._handle_orderbook(message)
            elif str(channel_id) == self.registry.ticker_channel:
                self._handle_ticker(message)
        except StreamParseError as e:
            logger.warning(f"[스트림] {e}: ({message})")
            self._record_drop("parse")
        except Exception:
            logger.exception(f"[스트림] 채널 {channel_id} 처리 중 예외, 프레임 버림")
            self._record_drop("listener")

    def _handle_ticker(self, message: list) -> None:
        ticker = parse_ticker(message, self.registry)
        self.emitter.emit("ticker", ticker)

    def _handle_orderbook(self, message: list) -> None:
        deltas = parse_orderbook(message, self.registry)
        self._check_sequence(self.registry.pair_for(to_int(message[0])), message[1])
        for d in deltas:
            self.emitter.emit(d.event, d).emit(d.pair, d).emit(f"{d.pair}-{d.event}", d)

    def _check_sequence(self, pair: str, raw_seq) -> None:
        """마켓별 시퀀스 번호 연속성 확인 (갭은 기록만, 재동기화 없음)"""
        if is_sentinel(to_float(raw_seq)):
            logger.debug(f"[스트림] {pair} 시퀀스 값 이상 {raw_seq!r}, 갭 검사 건너뜀")
            return
        seq = to_int(raw_seq)
        last = self._last_seq.get(pair)
        if last is not None and seq > last + 1:
            if self.stats:
                self.stats.record_gap(pair, last + 1, seq, time.time())
            else:
                logger.warning(f"[갭] {pair} expected={last + 1} actual={seq}")
        if last is None or seq > last:
            self._last_seq[pair] = seq

    def _record_drop(self, reason: str) -> None:
        if self.stats:
            self.stats.record_drop(reason)

    def _reset_reconnect_delay(self) -> None:
        self.reconnect_delay = 1.0

    def _increase_reconnect_delay(self) -> None:
        self.reconnect_delay = min(self.reconnect_delay * 2, self.config.max_reconnect_delay)
