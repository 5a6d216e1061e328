"""서명 테스트 - HMAC-SHA512 hex, 결정성"""

import hashlib
import hmac

from hypothesis import given, strategies as st, settings

from poloniex_api.signer import Signer


class TestSigner:

    def test_known_body(self):
        """secret="abc", body="command=returnBalances&nonce=1" """
        body = "command=returnBalances&nonce=1"
        expected = hmac.new(b"abc", body.encode(), hashlib.sha512).hexdigest()
        sign = Signer("abc").sign(body)
        assert sign == expected
        assert sign == sign.lower()
        assert len(sign) == 128
        assert sign.strip() == sign

    @given(secret=st.text(min_size=1, max_size=40), body=st.text(max_size=200))
    @settings(max_examples=100)
    def test_deterministic(self, secret, body):
        """같은 (secret, body)는 항상 같은 서명"""
        assert Signer(secret).sign(body) == Signer(secret).sign(body)

    def test_secret_changes_signature(self):
        body = "command=returnBalances&nonce=1"
        assert Signer("abc").sign(body) != Signer("abd").sign(body)

    def test_repr_hides_secret(self):
        assert "abc" not in repr(Signer("abc"))
