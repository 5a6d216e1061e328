"""숫자 변환 테스트
Property 1: to_float(to_string(x)) 라운드트립
Property 2: 파싱 불가 입력은 예외 없이 센티널
"""

from decimal import Decimal

import pytest
from hypothesis import given, strategies as st, settings

from poloniex_api.numeric import MAX_FLOAT, to_float, to_int, to_string, is_sentinel


finite_st = st.floats(min_value=-1e12, max_value=1e12, allow_nan=False, allow_infinity=False)


# ── Property 1: 라운드트립 ──

class TestRoundtrip:

    @given(x=finite_st)
    @settings(max_examples=300)
    def test_float_string_roundtrip(self, x):
        """%.8f 직렬화 후 복원 오차는 상대 1e-8 (0 근처는 절대 5e-9) 이내"""
        back = to_float(to_string(x))
        assert abs(back - x) <= max(1e-8 * abs(x), 5e-9)

    @given(n=st.integers(min_value=-10**15, max_value=10**15))
    @settings(max_examples=100)
    def test_int_string_roundtrip(self, n):
        assert to_string(n) == str(n)
        assert to_float(to_string(n)) == float(n)


# ── Property 2: 센티널 ──

class TestSentinel:

    @given(text=st.text(alphabet="abcxyz-_ ,;", min_size=1, max_size=10))
    @settings(max_examples=100)
    def test_malformed_string_yields_sentinel(self, text):
        assert to_float(text) == MAX_FLOAT

    def test_empty_string_yields_sentinel(self):
        assert to_float("") == MAX_FLOAT
        assert is_sentinel(to_float(""))

    @pytest.mark.parametrize("value", [None, [], {}, object(), True])
    def test_unsupported_shape_yields_sentinel(self, value):
        assert to_float(value) == MAX_FLOAT


# ── 단위 테스트 ──

class TestNumericUnit:

    @pytest.mark.parametrize("value,expected", [
        ("0.00012345", 0.00012345),
        (0.00012345, 0.00012345),
        (0, 0.0),
        ("0", 0.0),
        (Decimal("0.00012345"), 0.00012345),
        (7, 7.0),
    ])
    def test_accepted_shapes(self, value, expected):
        assert to_float(value) == expected

    def test_to_string_formats(self):
        assert to_string(0.5) == "0.50000000"
        assert to_string(42) == "42"
        assert to_string("abc") == "abc"
        assert to_string(Decimal("0.10")) == "0.10"
        assert to_string(None) == ""

    def test_to_int(self):
        assert to_int("121") == 121
        assert to_int(148.0) == 148
        assert to_int("nan") == 0
