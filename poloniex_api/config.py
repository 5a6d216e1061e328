"""클라이언트 설정 모듈 - config.yaml / 자격증명 JSON 로드 및 Config 데이터클래스"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path

import yaml

from poloniex_api.errors import ConfigError


@dataclass
class Config:
    """클라이언트 설정 (config.yaml 또는 {"key","secret"} JSON에서 로드)"""
    key: str = ""
    secret: str = ""
    public_url: str = "https://poloniex.com/public"
    trading_url: str = "https://poloniex.com/tradingApi"
    ws_url: str = "wss://api2.poloniex.com/"
    request_timeout: float = 130.0
    ping_interval: float = 20.0
    max_reconnect_delay: float = 60.0
    debug: bool = False
    log_dir: str = ""

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """YAML 파일에서 Config 객체 생성 (파일 없으면 기본값 = 공개 API 전용)"""
        p = Path(path)
        if not p.exists():
            return cls()
        try:
            with open(p, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{path} 파싱 실패: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: 최상위가 매핑이 아님")
        return cls._from_mapping(data)

    @classmethod
    def from_json(cls, path: str) -> "Config":
        """자격증명 JSON ({"key": ..., "secret": ...}) 로드. 파일이 없으면 ConfigError"""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigError(f"{path} 읽기 실패: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path} 언마샬 실패: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: 최상위가 객체가 아님")
        return cls._from_mapping(data)

    @classmethod
    def _from_mapping(cls, data: dict) -> "Config":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    def to_yaml(self, path: str) -> None:
        """Config 객체를 YAML 파일로 저장"""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(asdict(self), f, default_flow_style=False, allow_unicode=True)

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def has_credentials(self) -> bool:
        return bool(self.key and self.secret)

    def __repr__(self) -> str:
        secret = "***" if self.secret else ""
        return (
            f"Config(key={self.key!r}, secret={secret!r}, public_url={self.public_url!r}, "
            f"trading_url={self.trading_url!r}, ws_url={self.ws_url!r}, "
            f"request_timeout={self.request_timeout!r}, debug={self.debug!r})"
        )
