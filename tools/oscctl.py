from __future__ import annotations

import argparse
import time

from pythonosc.udp_client import SimpleUDPClient


PREFIX = "/virtuoso/remote"


def main():
    ap = argparse.ArgumentParser(description="Send remote-control OSC messages to a companion")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=9003)
    ap.add_argument("--prefix", default=PREFIX, help=f"Address prefix before the topic (default: {PREFIX})")
    sub = ap.add_subparsers(dest="cmd", required=True)
    p_on = sub.add_parser("noteon"); p_on.add_argument("--note", type=int, required=True); p_on.add_argument("--velocity", type=float, default=1.0); p_on.add_argument("--channel", type=int, default=1)
    p_off = sub.add_parser("noteoff"); p_off.add_argument("--note", type=int, required=True); p_off.add_argument("--channel", type=int, default=1)
    p_par = sub.add_parser("parameter"); p_par.add_argument("--number", type=int, required=True); p_par.add_argument("--value", type=float, required=True); p_par.add_argument("--channel", type=int, default=1)
    p_vol = sub.add_parser("volume"); p_vol.add_argument("--value", type=float, required=True); p_vol.add_argument("--channel", type=int, default=1)
    p_con = sub.add_parser("connect"); p_con.add_argument("--api-version", type=int, default=0)
    sub.add_parser("disconnect")
    p_sweep = sub.add_parser("sweep", help="Stream a parameter ramp to exercise rate limiting")
    p_sweep.add_argument("--number", type=int, default=74); p_sweep.add_argument("--rate", type=float, default=1000.0); p_sweep.add_argument("--seconds", type=float, default=2.0); p_sweep.add_argument("--channel", type=int, default=1)
    args = ap.parse_args()

    client = SimpleUDPClient(args.host, args.port)
    addr = f"{args.prefix}/{args.cmd}"
    if args.cmd == "noteon":
        client.send_message(addr, [float(args.velocity), args.channel, args.note])
    elif args.cmd == "noteoff":
        client.send_message(addr, [0.0, args.channel, args.note])
    elif args.cmd == "parameter":
        client.send_message(addr, [float(args.value), args.channel, args.number])
    elif args.cmd == "volume":
        client.send_message(addr, [float(args.value), args.channel, 7])
    elif args.cmd == "connect":
        client.send_message(addr, [0.0, args.api_version, 0])
    elif args.cmd == "disconnect":
        client.send_message(addr, [0.0, 0, 0])
    elif args.cmd == "sweep":
        addr = f"{args.prefix}/parameter"
        total = int(args.rate * args.seconds)
        for i in range(total):
            client.send_message(addr, [(i % 128) / 128.0, args.channel, args.number])
            time.sleep(1.0 / args.rate)
        print(f"sent {total} parameter messages")
        return
    print(f"sent {addr}")


if __name__ == "__main__":
    main()
