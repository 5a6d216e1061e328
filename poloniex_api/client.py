"""폴로닉스 클라이언트 - REST 명령, 레지스트리 부트스트랩, 스트림/이벤트 통합"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable

import aiohttp

from poloniex_api.config import Config
from poloniex_api.errors import BootstrapError, PoloniexError
from poloniex_api.events import EventEmitter, Listener
from poloniex_api.models import (
    AccountBalances, ActiveLoans, Balance, Base, ChartDataEntry, Currency,
    DepositsWithdrawals, FeeInfo, LoanOffer, LoanOrders, MarginAccountSummary,
    MoveOrder, OpenLoanOffer, OpenOrder, OrderBook, OrderResult, OrderTrade,
    PrivateTradeHistoryEntry, TickerEntry, TradeHistoryEntry, WSOrderbook, WSTicker,
)
from poloniex_api.numeric import to_string
from poloniex_api.operations import (
    PRIVATE_OPERATIONS, PUBLIC_OPERATIONS, Operation, OrderModifier,
)
from poloniex_api.registry import SymbolRegistry
from poloniex_api.rest import RestDispatcher
from poloniex_api.stream import Streamer
from poloniex_api.stream_stats import StreamStats

logger = logging.getLogger(__name__)

# 조회 구간 끝을 열어둘 때 쓰는 값
OPEN_END = "9999999999"
DEPOSIT_HISTORY_SECONDS = 4380 * 3600  # 약 6개월
DEFAULT_CHART_PERIOD = 300


def _rate(value: float) -> str:
    return "%.8f" % value


def _unix(value: datetime | int | float) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


class Poloniex:
    """폴로닉스 REST + WebSocket 클라이언트.

    ``await client.start()`` (또는 ``async with``) 시 returnTicker로 심볼 레지스트리를
    채운다. 실패하면 BootstrapError. 레지스트리는 이후 변경되지 않는다.

    Example:
        async with Poloniex.from_config("config.json") as polo:
            polo.on_ticker(print)
            await polo.subscribe("ticker")
            await polo.run_stream()
    """

    def __init__(self, key: str = "", secret: str = "", config: Config | None = None):
        config = config or Config()
        if key or secret:
            config = replace(config, key=key, secret=secret)
        self.config = config
        self.rest = RestDispatcher(config)
        self.emitter = EventEmitter()
        self.stats = StreamStats()
        self.registry: SymbolRegistry | None = None
        self._streamer: Streamer | None = None
        self._stream_task: asyncio.Task | None = None

    @classmethod
    def from_config(cls, path: str) -> "Poloniex":
        """{"key": ..., "secret": ...} JSON 파일로 생성"""
        return cls(config=Config.from_json(path))

    @classmethod
    def public_only(cls, config: Config | None = None) -> "Poloniex":
        config = config or Config()
        return cls(config=replace(config, key="", secret=""))

    # ── 수명 주기 ──

    async def start(self) -> "Poloniex":
        """마켓 목록 조회 → 레지스트리 생성 (한 번만)"""
        if self.registry is not None:
            return self
        try:
            markets = await self.ticker()
            # id가 없거나 중복된 마켓이면 역매핑을 만들 수 없다 (ValueError)
            registry = SymbolRegistry.from_markets(
                {pair: entry.id for pair, entry in markets.items()}
            )
        except (PoloniexError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise BootstrapError(f"error getting markets for lookups: {e}") from e
        self.registry = registry
        self._streamer = Streamer(self.config, self.registry, self.emitter, self.stats)
        return self

    async def close(self) -> None:
        await self.stop_stream()
        await self.rest.close()

    async def __aenter__(self) -> "Poloniex":
        try:
            return await self.start()
        except BaseException:
            await self.rest.close()
            raise

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def debug(self) -> None:
        """REST 요청/응답 원문과 소요 시간을 로그로 남김"""
        self.rest.debug = True

    def _require_streamer(self) -> Streamer:
        if self._streamer is None:
            raise PoloniexError("클라이언트가 시작되지 않음 (await start() 먼저 호출)")
        return self._streamer

    # ── 이벤트 ──

    def on(self, event: str, listener: Listener) -> EventEmitter:
        return self.emitter.on(event, listener)

    def off(self, event: str, listener: Listener) -> EventEmitter:
        return self.emitter.off(event, listener)

    def once(self, event: str, listener: Listener) -> EventEmitter:
        return self.emitter.once(event, listener)

    def emit(self, event: str, *args) -> EventEmitter:
        return self.emitter.emit(event, *args)

    def on_ticker(self, listener: Callable[[WSTicker], Any]) -> EventEmitter:
        return self.emitter.on("ticker", listener)

    def on_orderbook(self, pair: str, listener: Callable[[WSOrderbook], Any],
                     event: str | None = None) -> EventEmitter:
        """페어 전체 델타 또는 특정 이벤트(modify/remove/trade)만 수신"""
        name = pair if event is None else f"{pair}-{event}"
        return self.emitter.on(name, listener)

    # ── 스트림 ──

    @property
    def subscriptions(self) -> frozenset[str]:
        return self._require_streamer().subscriptions.channels

    async def subscribe(self, channel: str) -> str:
        """채널 구독. channel: 페어 이름(USDT_BTC), 제어 채널 이름(ticker) 또는 ID"""
        return await self._require_streamer().subscriptions.subscribe(channel)

    async def unsubscribe(self, channel: str) -> str:
        return await self._require_streamer().subscriptions.unsubscribe(channel)

    async def run_stream(self) -> None:
        """WebSocket 수신 루프 (취소될 때까지)"""
        await self._require_streamer().run()

    def start_stream(self) -> asyncio.Task:
        if self._stream_task is None or self._stream_task.done():
            self._stream_task = asyncio.create_task(self.run_stream())
        return self._stream_task

    async def stop_stream(self) -> None:
        task, self._stream_task = self._stream_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def idle(self, interval: float, *callbacks: Callable[[datetime], Any]) -> None:
        """스트림이 도는 동안 interval 초마다 콜백 호출"""
        while True:
            await asyncio.sleep(interval)
            now = datetime.now()
            for cb in callbacks:
                cb(now)

    # ── REST ──

    async def call(self, operation: Operation, params: dict | None = None) -> Any:
        """서술자 하나 실행: 파라미터 병합 → 공개/인증 디스패치 → 디코딩"""
        merged = operation.build_params(params)
        if operation.private:
            raw = await self.rest.private(operation.command, merged)
        else:
            raw = await self.rest.public(operation.command, merged)
        return operation.decode(raw)

    # 공개 API

    async def ticker(self) -> dict[str, TickerEntry]:
        return await self.call(PUBLIC_OPERATIONS["ticker"])

    async def daily_volume(self) -> dict[str, dict[str, float]]:
        return await self.call(PUBLIC_OPERATIONS["daily_volume"])

    async def order_book(self, pair: str, depth: int = 40) -> OrderBook:
        return await self.call(PUBLIC_OPERATIONS["order_book"],
                               {"currencyPair": pair, "depth": depth})

    async def order_book_all(self, depth: int = 5) -> dict[str, OrderBook]:
        return await self.call(PUBLIC_OPERATIONS["order_book_all"], {"depth": depth})

    async def trade_history(self, pair: str, start: int | None = None,
                            end: int | None = None) -> list[TradeHistoryEntry]:
        """최근 200건, 또는 start/end(unix) 구간 최대 50,000건"""
        return await self.call(PUBLIC_OPERATIONS["trade_history"],
                               {"currencyPair": pair, "start": start, "end": end})

    async def chart_data(self, pair: str) -> list[ChartDataEntry]:
        """최근 24시간, 5분 해상도"""
        return await self.call(PUBLIC_OPERATIONS["chart_data"], {
            "currencyPair": pair,
            "start": int(time.time()) - 24 * 3600,
            "end": OPEN_END,
            "period": DEFAULT_CHART_PERIOD,
        })

    async def chart_data_period(self, pair: str, start: datetime | int, end: datetime | int,
                                period: int = DEFAULT_CHART_PERIOD) -> list[ChartDataEntry]:
        return await self.call(PUBLIC_OPERATIONS["chart_data"], {
            "currencyPair": pair,
            "start": _unix(start),
            "end": _unix(end),
            "period": period,
        })

    async def chart_data_current(self, pair: str) -> list[ChartDataEntry]:
        """최근 5분 캔들"""
        return await self.call(PUBLIC_OPERATIONS["chart_data"], {
            "currencyPair": pair,
            "start": int(time.time()) - 5 * 60,
            "end": OPEN_END,
            "period": DEFAULT_CHART_PERIOD,
        })

    async def currencies(self) -> dict[str, Currency]:
        return await self.call(PUBLIC_OPERATIONS["currencies"])

    async def loan_orders(self, currency: str) -> LoanOrders:
        return await self.call(PUBLIC_OPERATIONS["loan_orders"], {"currency": currency})

    # 인증 API

    async def balances(self) -> dict[str, Balance]:
        return await self.call(PRIVATE_OPERATIONS["balances"])

    async def available_account_balances(self) -> AccountBalances:
        return await self.call(PRIVATE_OPERATIONS["available_account_balances"])

    account_balances = available_account_balances

    async def addresses(self) -> dict[str, str]:
        return await self.call(PRIVATE_OPERATIONS["addresses"])

    async def generate_new_address(self, currency: str) -> str:
        return await self.call(PRIVATE_OPERATIONS["generate_new_address"], {"currency": currency})

    async def deposits_withdrawals(self, start: int | None = None,
                                   end: int | None = None) -> DepositsWithdrawals:
        """입출금 내역 (기본: 최근 약 6개월)"""
        if start is None:
            start = int(time.time()) - DEPOSIT_HISTORY_SECONDS
        return await self.call(PRIVATE_OPERATIONS["deposits_withdrawals"],
                               {"start": start, "end": OPEN_END if end is None else end})

    async def open_orders(self, pair: str) -> list[OpenOrder]:
        return await self.call(PRIVATE_OPERATIONS["open_orders"], {"currencyPair": pair})

    async def open_orders_all(self) -> dict[str, list[OpenOrder]]:
        return await self.call(PRIVATE_OPERATIONS["open_orders_all"])

    async def private_trade_history(self, pair: str, start: int | None = None,
                                    end: int | None = None) -> list[PrivateTradeHistoryEntry]:
        return await self.call(PRIVATE_OPERATIONS["private_trade_history"],
                               {"currencyPair": pair, "start": start, "end": end})

    async def private_trade_history_all(
        self, start: int | None = None, end: int | None = None,
    ) -> dict[str, list[PrivateTradeHistoryEntry]]:
        return await self.call(PRIVATE_OPERATIONS["private_trade_history_all"],
                               {"start": start, "end": end})

    async def order_trades(self, order_number: int) -> list[OrderTrade]:
        return await self.call(PRIVATE_OPERATIONS["order_trades"],
                               {"orderNumber": "%d" % order_number})

    async def cancel_order(self, order_number: int) -> bool:
        return await self.call(PRIVATE_OPERATIONS["cancel_order"],
                               {"orderNumber": "%d" % order_number})

    async def buy(self, pair: str, rate: float, amount: float,
                  modifier: OrderModifier = OrderModifier.NONE) -> OrderResult:
        """지정가 매수"""
        return await self._place("buy", pair, rate, amount, modifier)

    async def sell(self, pair: str, rate: float, amount: float,
                   modifier: OrderModifier = OrderModifier.NONE) -> OrderResult:
        """지정가 매도"""
        return await self._place("sell", pair, rate, amount, modifier)

    async def _place(self, side: str, pair: str, rate: float, amount: float,
                     modifier: OrderModifier) -> OrderResult:
        params = {"currencyPair": pair, "rate": _rate(rate), "amount": _rate(amount)}
        params.update(modifier.params())
        return await self.call(PRIVATE_OPERATIONS[side], params)

    async def buy_post_only(self, pair: str, rate: float, amount: float) -> OrderResult:
        """일부라도 즉시 체결되면 주문 거부"""
        return await self.buy(pair, rate, amount, OrderModifier.POST_ONLY)

    async def buy_fill_or_kill(self, pair: str, rate: float, amount: float) -> OrderResult:
        return await self.buy(pair, rate, amount, OrderModifier.FILL_OR_KILL)

    async def buy_immediate_or_cancel(self, pair: str, rate: float, amount: float) -> OrderResult:
        return await self.buy(pair, rate, amount, OrderModifier.IMMEDIATE_OR_CANCEL)

    async def sell_post_only(self, pair: str, rate: float, amount: float) -> OrderResult:
        return await self.sell(pair, rate, amount, OrderModifier.POST_ONLY)

    async def sell_fill_or_kill(self, pair: str, rate: float, amount: float) -> OrderResult:
        return await self.sell(pair, rate, amount, OrderModifier.FILL_OR_KILL)

    async def sell_immediate_or_cancel(self, pair: str, rate: float, amount: float) -> OrderResult:
        return await self.sell(pair, rate, amount, OrderModifier.IMMEDIATE_OR_CANCEL)

    async def move(self, order_number: int, rate: float,
                   modifier: OrderModifier = OrderModifier.NONE) -> MoveOrder:
        """주문 취소 + 같은 종류 재주문을 원자적으로 실행"""
        params = {"orderNumber": "%d" % order_number, "rate": _rate(rate)}
        params.update(modifier.params())
        return await self.call(PRIVATE_OPERATIONS["move_order"], params)

    async def move_post_only(self, order_number: int, rate: float) -> MoveOrder:
        return await self.move(order_number, rate, OrderModifier.POST_ONLY)

    async def move_fill_or_kill(self, order_number: int, rate: float) -> MoveOrder:
        return await self.move(order_number, rate, OrderModifier.FILL_OR_KILL)

    async def move_immediate_or_cancel(self, order_number: int, rate: float) -> MoveOrder:
        return await self.move(order_number, rate, OrderModifier.IMMEDIATE_OR_CANCEL)

    async def withdraw(self, currency: str, amount: float, address: str) -> Base:
        """이메일 확인 없이 즉시 출금 (API 키에 출금 권한 필요)"""
        return await self.call(PRIVATE_OPERATIONS["withdraw"], {
            "currency": currency,
            "amount": "%f" % amount,
            "address": address,
        })

    async def fee_info(self) -> FeeInfo:
        return await self.call(PRIVATE_OPERATIONS["fee_info"])

    async def tradable_balances(self) -> dict[str, dict[str, float]]:
        return await self.call(PRIVATE_OPERATIONS["tradable_balances"])

    async def transfer_balance(self, currency: str, amount: float,
                               from_account: str, to_account: str) -> Base:
        return await self.call(PRIVATE_OPERATIONS["transfer_balance"], {
            "currency": currency,
            "amount": to_string(amount),
            "fromAccount": from_account,
            "toAccount": to_account,
        })

    async def margin_account_summary(self) -> MarginAccountSummary:
        return await self.call(PRIVATE_OPERATIONS["margin_account_summary"])

    async def create_loan_offer(self, currency: str, amount: float, duration: int,
                                renew: bool, lending_rate: float) -> LoanOffer:
        """lending_rate는 퍼센트 단위 (서버에는 /100 해서 전송)"""
        return await self.call(PRIVATE_OPERATIONS["create_loan_offer"], {
            "currency": currency,
            "amount": to_string(amount),
            "lendingRate": to_string(lending_rate / 100.0),
            "duration": "%d" % duration,
            "autoRenew": "1" if renew else "0",
        })

    async def cancel_loan_offer(self, order_number: int) -> bool:
        return await self.call(PRIVATE_OPERATIONS["cancel_loan_offer"],
                               {"orderNumber": "%d" % order_number})

    async def open_loan_offers(self) -> dict[str, list[OpenLoanOffer]]:
        return await self.call(PRIVATE_OPERATIONS["open_loan_offers"])

    async def active_loans(self) -> ActiveLoans:
        return await self.call(PRIVATE_OPERATIONS["active_loans"])

    async def toggle_auto_renew(self, order_number: int) -> bool:
        return await self.call(PRIVATE_OPERATIONS["toggle_auto_renew"],
                               {"orderNumber": "%d" % order_number})
