"""개발용 모의 이벤트 소스 (웹소켓 서버)

클라이언트 접속 시:
- 초기 스냅샷으로 burst 건 즉시 전송
- 이후 interval 마다 1~max_batch 건 배치 전송
- --drop-after 지정 시 N초 후 연결을 끊어 재연결 흐름 확인
- --garbage-every 지정 시 N번째 프레임마다 잘못된 JSON 주입

Usage:
    python -m dev.mock_source
    python -m dev.mock_source --port 9000 --drop-after 10 --garbage-every 50
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import random
import time
import uuid
from typing import Any, Sequence

import websockets

from market_feed.common.logger import PipelineLogger
from market_feed.common.serde import to_text
from market_feed.config.settings import mock_source_settings
from market_feed.core.types import KNOWN_FEEDS, EventType

logger = PipelineLogger.get_logger("mock_source", "dev")

DESCRIPTIONS: tuple[str, ...] = (
    "Whale Alert 🐋",
    "Bot Arbitrage 🤖",
    "Stop Loss Triggered",
    "Retail FOMO",
    "Liquidation Cascade",
    "Limit Order Filled",
    "Market Maker Exec",
)

GARBAGE_FRAME = "{not json"


def price_base(feed: str) -> float:
    if feed.startswith("BTC"):
        return 65000.0
    if feed.startswith("ETH"):
        return 3500.0
    return 150.0


def generate_event(rng: random.Random | None = None) -> dict[str, Any]:
    rng = rng or random.Random()
    feed = rng.choice(KNOWN_FEEDS)
    price = round(price_base(feed) + (rng.random() * 100 - 50), 2)
    return {
        "id": str(uuid.uuid4()),
        "feed": feed,
        "type": EventType.TRADE.value,
        "side": "buy" if rng.random() > 0.5 else "sell",
        "description": rng.choice(DESCRIPTIONS),
        "price": price,
        "quantity": f"{rng.random() * 10:.4f}",
        "timestamp": int(time.time() * 1000),
    }


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mock market event source (websocket)")
    parser.add_argument("--host", default=mock_source_settings.host, help="bind host")
    parser.add_argument("--port", type=int, default=mock_source_settings.port, help="bind port")
    parser.add_argument(
        "--interval",
        type=float,
        default=mock_source_settings.interval,
        help="seconds between batches (default: 0.1)",
    )
    parser.add_argument(
        "--burst",
        type=int,
        default=mock_source_settings.burst,
        help="events sent right after connect (default: 20)",
    )
    parser.add_argument(
        "--max-batch",
        type=int,
        default=mock_source_settings.max_batch,
        dest="max_batch",
        help="max events per batch (default: 3)",
    )
    parser.add_argument(
        "--drop-after",
        type=float,
        default=None,
        dest="drop_after",
        help="close each client connection after N seconds (optional)",
    )
    parser.add_argument(
        "--garbage-every",
        type=int,
        default=0,
        dest="garbage_every",
        help="send a malformed frame every N frames (0 = never)",
    )
    return parser.parse_args(argv)


class MockSource:
    """접속한 클라이언트마다 이벤트 스트림을 생성하는 모의 소스"""

    def __init__(self, args: argparse.Namespace, rng: random.Random | None = None) -> None:
        self.args = args
        self.rng = rng or random.Random()
        self.clients: int = 0

    def _frames(self, count: int, sent: int) -> list[str]:
        frames: list[str] = []
        for index in range(sent, sent + count):
            if self.args.garbage_every and (index + 1) % self.args.garbage_every == 0:
                frames.append(GARBAGE_FRAME)
            else:
                frames.append(to_text(generate_event(self.rng)))
        return frames

    async def _stream(self, websocket: Any) -> None:
        sent = 0
        for frame in self._frames(self.args.burst, sent):
            await websocket.send(frame)
        sent += self.args.burst

        while True:
            await asyncio.sleep(self.args.interval)
            batch = self.rng.randint(1, self.args.max_batch)
            for frame in self._frames(batch, sent):
                await websocket.send(frame)
            sent += batch

    async def handler(self, websocket: Any) -> None:
        self.clients += 1
        logger.info(f"Client connected (active={self.clients})")
        try:
            if self.args.drop_after:
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._stream(websocket), timeout=self.args.drop_after)
                logger.info("💥 Simulating connection drop")
                await websocket.close()
            else:
                await self._stream(websocket)
        except websockets.ConnectionClosed:
            pass
        finally:
            self.clients -= 1
            logger.info(f"Client disconnected (active={self.clients})")


async def run(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    source = MockSource(args)
    async with websockets.serve(source.handler, args.host, args.port):
        logger.info(f"Mock source started on ws://{args.host}:{args.port}")
        await asyncio.Future()


if __name__ == "__main__":
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        print("\n모의 소스가 종료되었습니다.")
