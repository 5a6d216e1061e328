"""숫자 변환 모듈 - 문자열/숫자/정수가 섞인 JSON 스칼라를 float로 통일"""

from __future__ import annotations

import sys
from decimal import Decimal, InvalidOperation

# 파싱 불가 값의 센티널 (예외 대신 반환)
MAX_FLOAT = sys.float_info.max


def to_float(value) -> float:
    """str / float / int / Decimal(JSON 숫자 토큰) → float. 실패 시 MAX_FLOAT"""
    if isinstance(value, bool):
        return MAX_FLOAT
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return MAX_FLOAT
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        return float(value)
    if isinstance(value, Decimal):
        try:
            return float(value)
        except (InvalidOperation, ValueError):
            return MAX_FLOAT
    return MAX_FLOAT


def to_string(value) -> str:
    """서버 전송용 문자열 변환 (float는 %.8f)"""
    if isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        return "%.8f" % value
    if isinstance(value, int):
        return "%d" % value
    if isinstance(value, Decimal):
        return str(value)
    return ""


def to_int(value) -> int:
    """ID 필드용 정수 변환 (nan/inf 는 0)"""
    try:
        return int(to_float(value))
    except (ValueError, OverflowError):
        return 0


def is_sentinel(value: float) -> bool:
    return value == MAX_FLOAT
