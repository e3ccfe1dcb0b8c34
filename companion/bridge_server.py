"""OSC → MIDI companion server.

Receives remote-control OSC messages over UDP, translates them into MIDI
events on a local output port and announces its address on the subnet so
the remote app can find it.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import Any, Dict, Optional

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import ThreadingOSCUDPServer

from companion.discovery import BROADCAST_PORT, Broadcaster, NoNetworkError, local_ipv4
from companion.midi_out import CoreSink, MidoSink
from companion.ports import PortNotFoundError, list_output_names, open_output, setup_hint
from companion.settings import DEFAULT_CONFIG_PATH, BridgeConfig, ConfigError, describe, load_config, validate_config
from companion.translator import ControlEvent, Translator
from companion.ws_server import start_ws_server


OSC_PORT = 9003


class Bridge:
    """Owns the translation pipeline and serialises access to it."""

    def __init__(self, config: BridgeConfig, sink: CoreSink, translator: Optional[Translator] = None):
        self.config = config
        self.sink = sink
        self.translator = translator or Translator(config, sink)
        # Transport callbacks may arrive on several threads; the rate window is single-writer
        self._lock = threading.Lock()
        self.osc_server: Optional[ThreadingOSCUDPServer] = None
        self._osc_thread: Optional[threading.Thread] = None

    def on_osc_message(self, address: str, *args: Any) -> Optional[ControlEvent]:
        with self._lock:
            return self.translator.handle(address, args)

    def make_dispatcher(self) -> Dispatcher:
        disp = Dispatcher()
        disp.set_default_handler(self.on_osc_message)
        return disp

    def start_osc(self, host: str = "0.0.0.0", port: int = OSC_PORT) -> ThreadingOSCUDPServer:
        self.osc_server = ThreadingOSCUDPServer((host, port), self.make_dispatcher())
        self._osc_thread = threading.Thread(target=self.osc_server.serve_forever, daemon=True)
        self._osc_thread.start()
        print(f"[osc] listening on {self.osc_server.server_address[0]}:{self.osc_server.server_address[1]}", flush=True)
        return self.osc_server

    def stop_osc(self) -> None:
        if self.osc_server:
            self.osc_server.shutdown()
            self.osc_server.server_close()
            self.osc_server = None
        if self._osc_thread:
            self._osc_thread.join(timeout=1.0)
            self._osc_thread = None

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "translator": self.translator.get_metrics(),
                "rate": self.translator.limiter.snapshot(),
                "session": self.translator.session.snapshot(),
            }


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Bridge remote-control OSC messages to a local MIDI output")
    ap.add_argument("--config", default=DEFAULT_CONFIG_PATH, help=f"INI config file (default: {DEFAULT_CONFIG_PATH})")
    ap.add_argument("--port", help="Substring to match MIDI output port (default: platform virtual port)")
    ap.add_argument("--osc-host", default="0.0.0.0")
    ap.add_argument("--osc-port", type=int, default=OSC_PORT)
    ap.add_argument("--broadcast-port", type=int, default=BROADCAST_PORT)
    ap.add_argument("--no-broadcast", action="store_true", help="Do not announce this companion on the subnet")
    ap.add_argument("--max-rate", type=int, help="Override MaxParameterMessageRate (0 = unlimited)")
    ap.add_argument("--remap", dest="remap", action="store_true", default=None, help="Force parameter remapping on")
    ap.add_argument("--no-remap", dest="remap", action="store_false", help="Force parameter remapping off")
    ap.add_argument("--verbose", action="store_true", default=None, help="Enable additional logging")
    ap.add_argument("--ws-port", type=int, help="Serve metrics over WebSocket on 127.0.0.1:<port>")
    ap.add_argument("--list-ports", action="store_true", help="List MIDI output ports and exit")
    args = ap.parse_args(argv)

    if args.list_ports:
        for name in list_output_names():
            print(name)
        return 0

    print("---- OSC MIDI Companion ----", flush=True)
    try:
        config = load_config(args.config).with_overrides(max_rate=args.max_rate, remap=args.remap, verbose=args.verbose)
    except ConfigError as e:
        print(f"[config] {e}", file=sys.stderr)
        return 2
    errors = validate_config(config)
    if errors:
        print(f"[config] invalid {args.config}:", file=sys.stderr)
        for e in errors:
            print(f" - {e}", file=sys.stderr)
        return 2
    if config.verbose:
        for line in describe(config):
            print(f"[config] {line}", flush=True)

    try:
        local_ipv4()
    except NoNetworkError:
        print("No network connection detected. Please check your connection and restart.", file=sys.stderr)
        return 1

    try:
        out = open_output(args.port)
    except PortNotFoundError as e:
        print(f"[midi] {e}", file=sys.stderr)
        print(setup_hint(), file=sys.stderr)
        return 1

    sink = MidoSink(out)
    bridge = Bridge(config, sink)
    broadcaster = None if args.no_broadcast else Broadcaster(port=args.broadcast_port)
    done = threading.Event()

    def shutdown(*_):
        done.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        bridge.start_osc(args.osc_host, args.osc_port)
        if broadcaster:
            broadcaster.start()
        if args.ws_port:
            start_ws_server(bridge, port=args.ws_port)
        print("Ready. Waiting for remote messages. Press Ctrl+C to quit.", flush=True)
        done.wait()
    finally:
        print("[osc] shutting down", flush=True)
        if broadcaster:
            broadcaster.stop()
        bridge.stop_osc()
        sink.panic()
        sink.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
