"""스트림 모니터 - 설정 로드, 채널 구독, 이벤트 로그 출력"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

from poloniex_api.client import Poloniex
from poloniex_api.config import Config
from poloniex_api.models import WSOrderbook, WSTicker

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)

STATS_INTERVAL = 60


def load_config(path: str) -> Config:
    """.json 이면 자격증명 파일, 그 외는 YAML"""
    if path.endswith(".json"):
        return Config.from_json(path)
    return Config.from_yaml(path)


def log_ticker(ticker: WSTicker) -> None:
    logger.info(
        f"[티커] {ticker.pair} last={ticker.last:.8f} bid={ticker.bid:.8f} "
        f"ask={ticker.ask:.8f} change={ticker.percent_change}"
    )


def log_delta(delta: WSOrderbook) -> None:
    logger.info(
        f"[오더북] {delta.pair} {delta.event} {delta.type} "
        f"rate={delta.rate:.8f} amount={delta.amount:.8f}"
    )


async def main(config_path: str = "config.yaml", channels: list[str] | None = None) -> None:
    """클라이언트 시작 → 구독 → SIGINT/SIGTERM까지 수신"""
    config = load_config(config_path)
    channels = channels or ["ticker"]

    if config.log_dir:
        Path(config.log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            Path(config.log_dir) / "poloniex.log", encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)

    async with Poloniex(config=config) as polo:
        logger.info("=== 폴로닉스 스트림 시작 ===")
        logger.info(f"채널: {channels}")

        polo.on_ticker(log_ticker)
        for channel in channels:
            await polo.subscribe(channel)
            pair_id = polo.registry.id_for(channel)
            if pair_id is not None and int(pair_id) < 1000:
                polo.on_orderbook(channel, log_delta)

        def report_stats(_now) -> None:
            stats = polo.stats.get_stats()
            logger.info(
                f"[통계] 메시지={stats['message_counts']} 갭={stats['gap_count']} "
                f"재연결={stats['reconnect_count']} 버림={stats['drops']}"
            )

        loop = asyncio.get_running_loop()
        shutdown_event = asyncio.Event()

        def _signal_handler():
            logger.info("종료 신호 수신, 스트림 정리 중...")
            shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

        stream_task = polo.start_stream()
        idle_task = asyncio.create_task(polo.idle(STATS_INTERVAL, report_stats))

        await asyncio.wait(
            [asyncio.create_task(shutdown_event.wait()), stream_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        idle_task.cancel()
        await asyncio.gather(idle_task, return_exceptions=True)

    logger.info("=== 종료 ===")


def run() -> None:
    config_file = sys.argv[1] if len(sys.argv) > 1 else "config.yaml"
    asyncio.run(main(config_file, sys.argv[2:]))


if __name__ == "__main__":
    run()
