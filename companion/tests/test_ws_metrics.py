import asyncio
import contextlib
import io
import json
import socket
import unittest

import websockets

from companion.bridge_server import Bridge
from companion.midi_out import VirtualSink
from companion.settings import BridgeConfig, Settings
from companion.ws_server import metrics_payload, serve_metrics


def _free_port() -> int:
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    addr, port = s.getsockname()
    s.close()
    return port


class TestWSMetrics(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.bridge = Bridge(BridgeConfig(settings=Settings(max_parameter_message_rate=0)), VirtualSink())
        self.port = _free_port()
        ready = asyncio.Event()
        self._out = contextlib.redirect_stdout(io.StringIO())
        self._out.__enter__()
        self.server_task = asyncio.create_task(serve_metrics(self.bridge, "127.0.0.1", self.port, interval=0.05, ready=ready))
        await asyncio.wait_for(ready.wait(), timeout=2.0)

    async def asyncTearDown(self):
        self.server_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.server_task
        self._out.__exit__(None, None, None)

    async def test_client_receives_periodic_metrics(self):
        self.bridge.on_osc_message("/a/b/noteon", 1.0, 1, 60)
        ws = await websockets.connect(f"ws://127.0.0.1:{self.port}")
        try:
            first = json.loads(await asyncio.wait_for(ws.recv(), timeout=2.0))
            second = json.loads(await asyncio.wait_for(ws.recv(), timeout=2.0))
        finally:
            await ws.close()
        self.assertEqual(first["type"], "metrics")
        self.assertEqual(first["payload"]["translator"]["msgs_note_on"], 1)
        self.assertIn("passProbability", first["payload"]["rate"])
        self.assertGreaterEqual(second["ts"], first["ts"])

    def test_payload_is_json_serialisable(self):
        obj = metrics_payload(self.bridge)
        self.assertEqual(json.loads(json.dumps(obj))["type"], "metrics")


if __name__ == "__main__":
    unittest.main()
