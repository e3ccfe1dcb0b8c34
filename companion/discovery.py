from __future__ import annotations

import socket
import threading
from typing import Callable, Optional


BROADCAST_ADDR = "255.255.255.255"
BROADCAST_PORT = 9002
BROADCAST_INTERVAL = 3.0
ANNOUNCE_PREFIX = "VirtuosoCompanion:"


class NoNetworkError(OSError):
    pass


def local_ipv4() -> str:
    """Return the IPv4 address of the interface used for outbound traffic."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; connect() on UDP only selects a route
        s.connect(("10.255.255.255", 1))
        addr = s.getsockname()[0]
        if addr and not addr.startswith("0."):
            return addr
    except OSError:
        pass
    finally:
        s.close()
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except socket.gaierror:
        infos = []
    for info in infos:
        addr = info[4][0]
        if not addr.startswith("127."):
            return addr
    raise NoNetworkError("no network adapters with an IPv4 address")


def announcement(ip: str, prefix: str = ANNOUNCE_PREFIX) -> bytes:
    return (prefix + ip).encode("utf-8")


class Broadcaster:
    """Periodically announce this companion's address on the local subnet.

    Fire-and-forget: no acknowledgement, no retry. A failed send is logged and
    the next tick tries again.
    """

    def __init__(
        self,
        port: int = BROADCAST_PORT,
        interval: float = BROADCAST_INTERVAL,
        prefix: str = ANNOUNCE_PREFIX,
        address: str = BROADCAST_ADDR,
        get_ip: Callable[[], str] = local_ipv4,
    ) -> None:
        self.port = int(port)
        self.interval = float(interval)
        self.prefix = prefix
        self.address = address
        self.get_ip = get_ip
        self.sent = 0
        self._sock: Optional[socket.socket] = None
        self._t: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def start(self):
        if self._t and self._t.is_alive():
            return
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        try:
            print(f"[discovery] broadcasting companion IP {self.get_ip()} on port {self.port}", flush=True)
        except OSError as e:
            print(f"[discovery] broadcasting on port {self.port} (address unavailable: {e})", flush=True)
        self._stop.clear()
        self._t = threading.Thread(target=self._run, daemon=True)
        self._t.start()

    def stop(self):
        self._stop.set()
        if self._t:
            self._t.join(timeout=1.0)
        if self._sock:
            self._sock.close()
            self._sock = None

    def send_once(self) -> None:
        data = announcement(self.get_ip(), self.prefix)
        self._sock.sendto(data, (self.address, self.port))
        self.sent += 1

    def _run(self):
        # First announcement goes out immediately
        while not self._stop.is_set():
            try:
                self.send_once()
            except OSError as e:
                print(f"[discovery] broadcast failed: {e}", flush=True)
            self._stop.wait(self.interval)
