"""요청 서명 모듈 - HMAC-SHA512 hex"""

import hashlib
import hmac


class Signer:
    """tradingApi 요청 본문 서명기"""

    def __init__(self, secret: str):
        self._secret = secret.encode("utf-8")

    def sign(self, body: str) -> str:
        """URL 인코딩이 끝난 본문 그대로 서명 (소문자 hex)"""
        return hmac.new(self._secret, body.encode("utf-8"), hashlib.sha512).hexdigest()

    def __repr__(self) -> str:
        return "Signer(secret=***)"
