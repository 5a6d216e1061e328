"""REST 호출 모듈 - 공개/인증 요청 생성, 서명, 응답 분류"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from decimal import Decimal
from typing import Any
from urllib.parse import urlencode

import aiohttp

from poloniex_api.config import Config
from poloniex_api.errors import DecodeError, PoloniexError, ServerError
from poloniex_api.nonce import NonceSource
from poloniex_api.signer import Signer

logger = logging.getLogger(__name__)


class RestDispatcher:
    """폴로닉스 REST 디스패처.

    공개/인증 호출 모두 클라이언트당 하나의 asyncio.Lock 아래에서 직렬 실행된다.
    락은 nonce 증가부터 응답 본문 디코딩까지 유지되므로, 같은 인스턴스에서 나가는
    인증 요청은 전송 순서대로 엄격히 증가하는 nonce를 가진다.
    """

    def __init__(self, config: Config, nonce: NonceSource | None = None):
        self.config = config
        self.signer = Signer(config.secret) if config.secret else None
        self.nonce = nonce or NonceSource()
        self.debug = config.debug
        self._lock = asyncio.Lock()
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.request_timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def public(self, command: str, params: dict | None = None) -> Any:
        """공개 API GET. command와 params 모두 쿼리스트링으로 전송"""
        query = dict(params or {})
        query["command"] = command
        started = time.monotonic()
        async with self._lock:
            session = self._get_session()
            async with session.get(self.config.public_url, params=query,
                                   timeout=self._timeout()) as resp:
                body = await resp.text()
            if self.debug:
                logger.info(f"[REST] public {command} {query}")
                logger.info(f"[REST] 응답: {body}")
            result = self.classify_response(body, command, empty_sentinel=False)
        if self.debug:
            logger.info(f"[REST] public {command} 완료 ({time.monotonic() - started:.3f}초)")
        return result

    async def private(self, command: str, params: dict | None = None) -> Any:
        """인증 API POST. 본문 = urlencode({...params, nonce, command}), Key/Sign 헤더"""
        if self.signer is None or not self.config.key:
            raise PoloniexError(f"{command}: API 키/시크릿이 설정되지 않음 (공개 전용 클라이언트)")

        started = time.monotonic()
        async with self._lock:
            form = {k: str(v) for k, v in (params or {}).items()}
            form["nonce"] = str(self.nonce.next())
            form["command"] = command
            body = urlencode(sorted(form.items()))

            headers = {
                "Key": self.config.key,
                "Sign": self.signer.sign(body),
                "Content-Type": "application/x-www-form-urlencoded",
                "Content-Length": str(len(body)),
                "Accept": "application/json",
            }
            session = self._get_session()
            async with session.post(self.config.trading_url, data=body, headers=headers,
                                    timeout=self._timeout()) as resp:
                text = await resp.text()
            if self.debug:
                logger.info(f"[REST] private {command} 응답: {text}")
            result = self.classify_response(text, command)
        if self.debug:
            logger.info(f"[REST] private {command} 완료 ({time.monotonic() - started:.3f}초)")
        return result

    @staticmethod
    def classify_response(body: str, command: str = "", empty_sentinel: bool = True) -> Any:
        """응답 분류: '[' 로 시작하면 데이터 없음(None) → {error} 면 ServerError → 디코딩 값

        서버는 조회 구간에 데이터가 없을 때만 배열을 돌려준다. 공개 API는 정상 응답이
        배열인 명령이 있으므로 empty_sentinel=False 로 호출한다.
        """
        if empty_sentinel and body.lstrip().startswith("["):
            return None
        try:
            data = json.loads(body, parse_float=Decimal)
        except json.JSONDecodeError as e:
            raise DecodeError(f"{command}: JSON 디코딩 실패: {e}") from e
        if isinstance(data, dict):
            error = data.get("error")
            if error:
                raise ServerError(str(error), command)
        return data
