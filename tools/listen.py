from __future__ import annotations

import argparse
import socket

from companion.discovery import ANNOUNCE_PREFIX, BROADCAST_PORT


def main():
    ap = argparse.ArgumentParser(description="Print companion discovery broadcasts")
    ap.add_argument("--port", type=int, default=BROADCAST_PORT)
    ap.add_argument("--count", type=int, default=0, help="Stop after N announcements (0 = forever)")
    args = ap.parse_args()
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    s.bind(("", args.port))
    print(f"listening for announcements on udp/{args.port}")
    seen = 0
    try:
        while args.count <= 0 or seen < args.count:
            data, (host, _port) = s.recvfrom(1024)
            text = data.decode("utf-8", errors="replace")
            if not text.startswith(ANNOUNCE_PREFIX):
                continue
            seen += 1
            print(f"{host}: companion at {text[len(ANNOUNCE_PREFIX):]}")
    except KeyboardInterrupt:
        pass
    finally:
        s.close()


if __name__ == "__main__":
    main()
