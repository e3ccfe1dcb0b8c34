from __future__ import annotations

import asyncio
import json
import threading
import time
from typing import Any, Dict, Optional

import websockets


def metrics_payload(bridge) -> Dict[str, Any]:
    return {
        "type": "metrics",
        "ts": time.time(),
        "payload": bridge.get_metrics(),
    }


async def _metrics_task(websocket, bridge, interval: float):
    while True:
        try:
            await websocket.send(json.dumps(metrics_payload(bridge)))
            await asyncio.sleep(interval)
        except websockets.ConnectionClosed:
            break


async def _handler(websocket, bridge, interval: float):
    task = asyncio.create_task(_metrics_task(websocket, bridge, interval))
    try:
        async for _ in websocket:
            pass
    finally:
        task.cancel()


async def serve_metrics(bridge, host: str = "127.0.0.1", port: int = 8765, interval: float = 1.0, ready: Optional[asyncio.Event] = None):
    """Serve metrics to every connected client until cancelled."""

    async def handler(ws, *maybe_path):
        return await _handler(ws, bridge, interval)

    async with websockets.serve(handler, host, port):
        print(f"[ws] serving metrics on ws://{host}:{port}", flush=True)
        if ready is not None:
            ready.set()
        await asyncio.Future()


def start_ws_server(bridge, host: str = "127.0.0.1", port: int = 8765) -> threading.Thread:
    """Start the metrics WS server on a daemon thread."""

    def _runner():
        asyncio.run(serve_metrics(bridge, host, port))

    th = threading.Thread(target=_runner, daemon=True)
    th.start()
    return th
