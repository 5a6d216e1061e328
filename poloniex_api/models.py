"""데이터 모델 정의 - 폴로닉스 WebSocket 이벤트 및 REST 응답"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from poloniex_api.numeric import to_float, to_int

SERVER_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _float_map(raw) -> dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    return {k: to_float(v) for k, v in raw.items()}


def _parse_server_date(raw: str) -> datetime | None:
    """서버 현지 시각 문자열 → naive datetime (실패 시 None)"""
    try:
        return datetime.strptime(raw, SERVER_DATE_FORMAT)
    except (TypeError, ValueError):
        return None


# ── WebSocket 이벤트 ──

@dataclass
class WSTicker:
    """ticker 채널(1002) 이벤트. percent_change는 서버 원값 (REST는 x100)"""
    pair: str
    last: float
    ask: float
    bid: float
    percent_change: float
    base_volume: float
    quote_volume: float
    is_frozen: bool
    daily_high: float
    daily_low: float
    pair_id: int


@dataclass
class WSOrderbook:
    """오더북 델타 한 건 (modify / remove / trade)"""
    pair: str
    event: str                   # modify / remove / trade
    trade_id: int
    type: str                    # ask / bid / buy / sell
    rate: float
    amount: float
    total: float
    timestamp: float             # unix seconds


# ── 공개 API ──

@dataclass
class TickerEntry:
    """returnTicker 마켓 요약"""
    id: int
    last: float
    ask: float
    bid: float
    percent_change: float        # x100 (퍼센트 단위)
    base_volume: float
    quote_volume: float
    is_frozen: bool
    daily_high: float = 0.0
    daily_low: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "TickerEntry":
        return cls(
            id=to_int(data.get("id", 0)),
            last=to_float(data.get("last", 0)),
            ask=to_float(data.get("lowestAsk", 0)),
            bid=to_float(data.get("highestBid", 0)),
            percent_change=to_float(data.get("percentChange", 0)) * 100.0,
            base_volume=to_float(data.get("baseVolume", 0)),
            quote_volume=to_float(data.get("quoteVolume", 0)),
            is_frozen=to_float(data.get("isFrozen", 0)) != 0.0,
            daily_high=to_float(data.get("high24hr", 0)),
            daily_low=to_float(data.get("low24hr", 0)),
        )


@dataclass
class Order:
    rate: float
    amount: float


@dataclass
class OrderBook:
    """마켓 오더북 스냅샷 (seq는 WebSocket 동기화용 시퀀스)"""
    asks: list[Order] = field(default_factory=list)
    bids: list[Order] = field(default_factory=list)
    is_frozen: bool = False
    seq: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "OrderBook":
        return cls(
            asks=[Order(to_float(r), to_float(a)) for r, a in data.get("asks", [])],
            bids=[Order(to_float(r), to_float(a)) for r, a in data.get("bids", [])],
            is_frozen=to_float(data.get("isFrozen", 0)) != 0.0,
            seq=to_int(data.get("seq", 0)),
        )


@dataclass
class TradeHistoryEntry:
    global_trade_id: int
    trade_id: int
    date: str
    type: str
    rate: float
    amount: float
    total: float

    @classmethod
    def from_dict(cls, data: dict) -> "TradeHistoryEntry":
        return cls(
            global_trade_id=to_int(data.get("globalTradeID", 0)),
            trade_id=to_int(data.get("tradeID", 0)),
            date=data.get("date", ""),
            type=data.get("type", ""),
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            total=to_float(data.get("total", 0)),
        )


@dataclass
class ChartDataEntry:
    """OHLC 캔들"""
    date: int
    high: float
    low: float
    open: float
    close: float
    volume: float
    quote_volume: float
    weighted_average: float

    @classmethod
    def from_dict(cls, data: dict) -> "ChartDataEntry":
        return cls(
            date=to_int(data.get("date", 0)),
            high=to_float(data.get("high", 0)),
            low=to_float(data.get("low", 0)),
            open=to_float(data.get("open", 0)),
            close=to_float(data.get("close", 0)),
            volume=to_float(data.get("volume", 0)),
            quote_volume=to_float(data.get("quoteVolume", 0)),
            weighted_average=to_float(data.get("weightedAverage", 0)),
        )


@dataclass
class Currency:
    id: int
    name: str
    tx_fee: float
    min_conf: float
    deposit_address: str
    disabled: bool
    delisted: bool
    frozen: bool

    @classmethod
    def from_dict(cls, data: dict) -> "Currency":
        return cls(
            id=to_int(data.get("id", 0)),
            name=data.get("name", ""),
            tx_fee=to_float(data.get("txFee", 0)),
            min_conf=to_float(data.get("minConf", 0)),
            deposit_address=data.get("depositAddress") or "",
            disabled=to_int(data.get("disabled", 0)) != 0,
            delisted=to_int(data.get("delisted", 0)) != 0,
            frozen=to_int(data.get("frozen", 0)) != 0,
        )


@dataclass
class LoanOrder:
    rate: float
    amount: float
    range_min: int
    range_max: int

    @classmethod
    def from_dict(cls, data: dict) -> "LoanOrder":
        return cls(
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            range_min=to_int(data.get("rangeMin", 0)),
            range_max=to_int(data.get("rangeMax", 0)),
        )


@dataclass
class LoanOrders:
    offers: list[LoanOrder] = field(default_factory=list)
    demands: list[LoanOrder] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "LoanOrders":
        return cls(
            offers=[LoanOrder.from_dict(o) for o in data.get("offers", [])],
            demands=[LoanOrder.from_dict(d) for d in data.get("demands", [])],
        )


# ── 인증 API ──

@dataclass
class Base:
    """공통 응답 봉투 {error, success, response}"""
    error: str = ""
    success: int = 0
    response: str = ""
    message: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Base":
        return cls(
            error=data.get("error", "") or "",
            success=to_int(data.get("success", 0)),
            response=str(data.get("response", "") or ""),
            message=str(data.get("message", "") or ""),
        )

    @property
    def ok(self) -> bool:
        return self.success == 1


@dataclass
class Balance:
    available: float
    on_orders: float
    btc_value: float

    @classmethod
    def from_dict(cls, data: dict) -> "Balance":
        return cls(
            available=to_float(data.get("available", 0)),
            on_orders=to_float(data.get("onOrders", 0)),
            btc_value=to_float(data.get("btcValue", 0)),
        )


@dataclass
class AccountBalances:
    """계정(exchange/margin/lending)별 잔고"""
    exchange: dict[str, float] = field(default_factory=dict)
    margin: dict[str, float] = field(default_factory=dict)
    lending: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "AccountBalances":
        return cls(
            exchange=_float_map(data.get("exchange")),
            margin=_float_map(data.get("margin")),
            lending=_float_map(data.get("lending")),
        )


@dataclass
class Deposit:
    currency: str
    address: str
    amount: float
    confirmations: int
    txid: str
    timestamp: int
    status: str

    @classmethod
    def from_dict(cls, data: dict) -> "Deposit":
        return cls(
            currency=data.get("currency", ""),
            address=data.get("address", ""),
            amount=to_float(data.get("amount", 0)),
            confirmations=to_int(data.get("confirmations", 0)),
            txid=data.get("txid", ""),
            timestamp=to_int(data.get("timestamp", 0)),
            status=data.get("status", ""),
        )


@dataclass
class Withdrawal:
    withdrawal_number: int
    currency: str
    address: str
    amount: float
    timestamp: int
    status: str

    @classmethod
    def from_dict(cls, data: dict) -> "Withdrawal":
        return cls(
            withdrawal_number=to_int(data.get("withdrawalNumber", 0)),
            currency=data.get("currency", ""),
            address=data.get("address", ""),
            amount=to_float(data.get("amount", 0)),
            timestamp=to_int(data.get("timestamp", 0)),
            status=data.get("status", ""),
        )


@dataclass
class DepositsWithdrawals:
    deposits: list[Deposit] = field(default_factory=list)
    withdrawals: list[Withdrawal] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DepositsWithdrawals":
        return cls(
            deposits=[Deposit.from_dict(d) for d in data.get("deposits", [])],
            withdrawals=[Withdrawal.from_dict(w) for w in data.get("withdrawals", [])],
        )


@dataclass
class OpenOrder:
    order_number: int
    type: str
    rate: float
    amount: float
    total: float

    @classmethod
    def from_dict(cls, data: dict) -> "OpenOrder":
        return cls(
            order_number=to_int(data.get("orderNumber", 0)),
            type=data.get("type", ""),
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            total=to_float(data.get("total", 0)),
        )


@dataclass
class PrivateTradeHistoryEntry:
    date: str
    rate: float
    amount: float
    total: float
    order_number: int
    type: str
    global_trade_id: int

    @classmethod
    def from_dict(cls, data: dict) -> "PrivateTradeHistoryEntry":
        return cls(
            date=data.get("date", ""),
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            total=to_float(data.get("total", 0)),
            order_number=to_int(data.get("orderNumber", 0)),
            type=data.get("type", ""),
            global_trade_id=to_int(data.get("globalTradeID", 0)),
        )


@dataclass
class OrderTrade:
    global_trade_id: int
    trade_id: int
    currency_pair: str
    type: str
    rate: float
    amount: float
    total: float
    fee: float
    date: str

    @classmethod
    def from_dict(cls, data: dict) -> "OrderTrade":
        return cls(
            global_trade_id=to_int(data.get("globalTradeID", 0)),
            trade_id=to_int(data.get("tradeID", 0)),
            currency_pair=data.get("currencyPair", ""),
            type=data.get("type", ""),
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            total=to_float(data.get("total", 0)),
            fee=to_float(data.get("fee", 0)),
            date=data.get("date", ""),
        )


@dataclass
class ResultingTrade:
    amount: float
    rate: float
    date: str
    total: float
    trade_id: str
    type: str

    @classmethod
    def from_dict(cls, data: dict) -> "ResultingTrade":
        return cls(
            amount=to_float(data.get("amount", 0)),
            rate=to_float(data.get("rate", 0)),
            date=data.get("date", ""),
            total=to_float(data.get("total", 0)),
            trade_id=str(data.get("tradeID", "")),
            type=data.get("type", ""),
        )


@dataclass
class OrderResult:
    """buy / sell 결과"""
    order_number: int = 0
    resulting_trades: list[ResultingTrade] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "OrderResult":
        return cls(
            order_number=to_int(data.get("orderNumber", 0)),
            resulting_trades=[ResultingTrade.from_dict(t)
                              for t in data.get("resultingTrades", [])],
        )


@dataclass
class MoveOrder:
    success: int = 0
    order_number: int = 0
    resulting_trades: list[ResultingTrade] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "MoveOrder":
        # resultingTrades는 {pair: [...]} 또는 [...] 로 온다
        raw = data.get("resultingTrades", [])
        if isinstance(raw, dict):
            raw = [t for trades in raw.values() for t in trades]
        return cls(
            success=to_int(data.get("success", 0)),
            order_number=to_int(data.get("orderNumber", 0)),
            resulting_trades=[ResultingTrade.from_dict(t) for t in raw],
        )


@dataclass
class FeeInfo:
    maker_fee: float
    taker_fee: float
    thirty_day_volume: float
    next_tier: float

    @classmethod
    def from_dict(cls, data: dict) -> "FeeInfo":
        return cls(
            maker_fee=to_float(data.get("makerFee", 0)),
            taker_fee=to_float(data.get("takerFee", 0)),
            thirty_day_volume=to_float(data.get("thirtyDayVolume", 0)),
            next_tier=to_float(data.get("nextTier", 0)),
        )


@dataclass
class MarginAccountSummary:
    total_value: float
    profit_loss: float
    lending_fees: float
    net_value: float
    total_borrowed_value: float
    current_margin: float

    @classmethod
    def from_dict(cls, data: dict) -> "MarginAccountSummary":
        return cls(
            total_value=to_float(data.get("totalValue", 0)),
            profit_loss=to_float(data.get("pl", 0)),
            lending_fees=to_float(data.get("lendingFees", 0)),
            net_value=to_float(data.get("netValue", 0)),
            total_borrowed_value=to_float(data.get("totalBorrowedValue", 0)),
            current_margin=to_float(data.get("currentMargin", 0)),
        )


@dataclass
class LoanOffer:
    success: int = 0
    message: str = ""
    order_id: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "LoanOffer":
        return cls(
            success=to_int(data.get("success", 0)),
            message=str(data.get("message", "") or ""),
            order_id=to_int(data.get("orderID", 0)),
        )


@dataclass
class OpenLoanOffer:
    id: int
    rate: float
    amount: float
    duration: int
    auto_renew: int
    renewable: bool
    date: str
    date_taken: datetime | None

    @classmethod
    def from_dict(cls, data: dict) -> "OpenLoanOffer":
        auto_renew = to_int(data.get("autoRenew", 0))
        date = data.get("date", "")
        return cls(
            id=to_int(data.get("id", 0)),
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            duration=to_int(data.get("duration", 0)),
            auto_renew=auto_renew,
            renewable=auto_renew == 1,
            date=date,
            date_taken=_parse_server_date(date),
        )


@dataclass
class ActiveLoan:
    """대출 제공 내역. date_taken은 서버 현지 시각 기준 naive datetime"""
    id: int
    currency: str
    rate: float
    amount: float
    range: int
    auto_renew: int
    renewable: bool
    date: str
    date_taken: datetime | None
    fees: float

    @classmethod
    def from_dict(cls, data: dict) -> "ActiveLoan":
        auto_renew = to_int(data.get("autoRenew", 0))
        date = data.get("date", "")
        return cls(
            id=to_int(data.get("id", 0)),
            currency=data.get("currency", ""),
            rate=to_float(data.get("rate", 0)),
            amount=to_float(data.get("amount", 0)),
            range=to_int(data.get("range", 0)),
            auto_renew=auto_renew,
            renewable=auto_renew == 1,
            date=date,
            date_taken=_parse_server_date(date),
            fees=to_float(data.get("fees", 0)),
        )


@dataclass
class ActiveLoans:
    provided: list[ActiveLoan] = field(default_factory=list)
    used: list[ActiveLoan] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ActiveLoans":
        return cls(
            provided=[ActiveLoan.from_dict(v) for v in data.get("provided", [])],
            used=[ActiveLoan.from_dict(v) for v in data.get("used", [])],
        )
