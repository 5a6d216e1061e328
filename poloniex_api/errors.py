"""예외 계층 - REST/스트림 에러 구분"""


class PoloniexError(Exception):
    """클라이언트 예외 기본 클래스"""


class ServerError(PoloniexError):
    """서버가 {"error": "..."} 를 반환한 경우. str(err)는 서버 메시지 그대로"""

    def __init__(self, message: str, command: str = ""):
        super().__init__(message)
        self.message = message
        self.command = command


class DecodeError(PoloniexError):
    """응답이 JSON이 아니거나 기대한 형태와 다름"""


class ChannelError(PoloniexError):
    """레지스트리에 없는 채널 토큰"""


class BootstrapError(PoloniexError):
    """시작 시 마켓 목록(returnTicker) 조회 실패"""


class ConfigError(PoloniexError):
    """설정 파일 읽기/파싱 실패"""


class StreamParseError(PoloniexError):
    """WebSocket 프레임 디코딩 실패 (프레임 단위로 버려짐)"""
