"""REST 명령 테이블 - 명령 이름, 고정 파라미터, 응답 디코더 서술자"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from poloniex_api.errors import DecodeError
from poloniex_api.models import (
    AccountBalances, ActiveLoans, Balance, Base, ChartDataEntry, Currency,
    DepositsWithdrawals, FeeInfo, LoanOffer, LoanOrders, MarginAccountSummary,
    MoveOrder, OpenLoanOffer, OpenOrder, OrderBook, OrderResult, OrderTrade,
    PrivateTradeHistoryEntry, TickerEntry, TradeHistoryEntry,
)
from poloniex_api.numeric import to_float

Decoder = Callable[[Any], Any]


class OrderModifier(Enum):
    """주문 옵션 (상호 배타)"""
    NONE = ""
    POST_ONLY = "postOnly"
    FILL_OR_KILL = "fillOrKill"
    IMMEDIATE_OR_CANCEL = "immediateOrCancel"

    def params(self) -> dict[str, str]:
        return {self.value: "1"} if self.value else {}


# ── 디코더 조합기 ──
# None 은 빈 배열 센티널("데이터 없음")이며 각 형태의 빈 값으로 바뀐다.

def mapping_of(item: Decoder) -> Decoder:
    def decode(raw):
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise DecodeError(f"객체 기대, {type(raw).__name__} 수신")
        return {k: item(v) for k, v in raw.items()}
    return decode


def list_of(item: Decoder) -> Decoder:
    def decode(raw):
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise DecodeError(f"배열 기대, {type(raw).__name__} 수신")
        return [item(v) for v in raw]
    return decode


def object_of(cls) -> Decoder:
    def decode(raw):
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise DecodeError(f"{cls.__name__}: 객체 기대, {type(raw).__name__} 수신")
        return cls.from_dict(raw)
    return decode


def float_map(raw) -> dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise DecodeError(f"객체 기대, {type(raw).__name__} 수신")
    return {k: to_float(v) for k, v in raw.items()}


def success_flag(raw) -> bool:
    """Base 봉투의 success == 1"""
    return object_of(Base)(raw).ok


def response_field(raw) -> str:
    return object_of(Base)(raw).response


def daily_volume(raw) -> dict[str, dict[str, float]]:
    """return24hVolume: 매핑이 아닌 합계 항목(totalBTC 등 문자열)은 건너뜀"""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise DecodeError(f"객체 기대, {type(raw).__name__} 수신")
    return {k: float_map(v) for k, v in raw.items() if isinstance(v, dict)}


@dataclass(frozen=True)
class Operation:
    """REST 명령 서술자"""
    command: str
    decoder: Decoder
    private: bool = True
    fixed: Mapping[str, str] = field(default_factory=dict)

    def build_params(self, params: Mapping[str, Any] | None = None) -> dict[str, str]:
        """고정 파라미터 + 호출 파라미터 (None 값은 제외)"""
        merged = dict(self.fixed)
        for k, v in (params or {}).items():
            if v is not None:
                merged[k] = str(v)
        return merged

    def decode(self, raw: Any) -> Any:
        try:
            return self.decoder(raw)
        except DecodeError as e:
            raise DecodeError(f"{self.command}: {e}") from e
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"{self.command}: 응답 형태 불일치: {e}") from e


PUBLIC_OPERATIONS: dict[str, Operation] = {
    "ticker": Operation("returnTicker", mapping_of(TickerEntry.from_dict), private=False),
    "daily_volume": Operation("return24hVolume", daily_volume, private=False),
    "order_book": Operation("returnOrderBook", object_of(OrderBook), private=False),
    "order_book_all": Operation("returnOrderBook", mapping_of(object_of(OrderBook)),
                                private=False, fixed={"currencyPair": "all"}),
    "trade_history": Operation("returnTradeHistory", list_of(TradeHistoryEntry.from_dict),
                               private=False),
    "chart_data": Operation("returnChartData", list_of(ChartDataEntry.from_dict), private=False),
    "currencies": Operation("returnCurrencies", mapping_of(Currency.from_dict), private=False),
    "loan_orders": Operation("returnLoanOrders", object_of(LoanOrders), private=False),
}

PRIVATE_OPERATIONS: dict[str, Operation] = {
    "balances": Operation("returnCompleteBalances", mapping_of(Balance.from_dict)),
    "available_account_balances": Operation("returnAvailableAccountBalances",
                                            object_of(AccountBalances)),
    "addresses": Operation("returnDepositAddresses", mapping_of(str)),
    "generate_new_address": Operation("generateNewAddress", response_field),
    "deposits_withdrawals": Operation("returnDepositsWithdrawals", object_of(DepositsWithdrawals)),
    "open_orders": Operation("returnOpenOrders", list_of(OpenOrder.from_dict)),
    "open_orders_all": Operation("returnOpenOrders", mapping_of(list_of(OpenOrder.from_dict)),
                                 fixed={"currencyPair": "all"}),
    "private_trade_history": Operation("returnTradeHistory",
                                       list_of(PrivateTradeHistoryEntry.from_dict)),
    "private_trade_history_all": Operation("returnTradeHistory",
                                           mapping_of(list_of(PrivateTradeHistoryEntry.from_dict)),
                                           fixed={"currencyPair": "all"}),
    "order_trades": Operation("returnOrderTrades", list_of(OrderTrade.from_dict)),
    "cancel_order": Operation("cancelOrder", success_flag),
    "buy": Operation("buy", object_of(OrderResult)),
    "sell": Operation("sell", object_of(OrderResult)),
    "move_order": Operation("moveOrder", object_of(MoveOrder)),
    "withdraw": Operation("withdraw", object_of(Base)),
    "fee_info": Operation("returnFeeInfo", object_of(FeeInfo)),
    "tradable_balances": Operation("returnTradableBalances", mapping_of(float_map)),
    "transfer_balance": Operation("transferBalance", object_of(Base)),
    "margin_account_summary": Operation("returnMarginAccountSummary",
                                        object_of(MarginAccountSummary)),
    "create_loan_offer": Operation("createLoanOffer", object_of(LoanOffer)),
    "cancel_loan_offer": Operation("cancelLoanOffer", success_flag),
    "open_loan_offers": Operation("returnOpenLoanOffers",
                                  mapping_of(list_of(OpenLoanOffer.from_dict))),
    "active_loans": Operation("returnActiveLoans", object_of(ActiveLoans)),
    "toggle_auto_renew": Operation("toggleAutoRenew", success_flag),
}
