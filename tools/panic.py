from __future__ import annotations

import argparse
import sys

from companion.midi_out import MidoSink
from companion.ports import PortNotFoundError, open_output


def main():
    ap = argparse.ArgumentParser(description="Send All Notes Off / All Sound Off to a MIDI output")
    ap.add_argument("--port", help="Substring to match MIDI port (default: platform virtual port)")
    args = ap.parse_args()
    try:
        out = open_output(args.port)
    except PortNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    sink = MidoSink(out)
    sink.panic()
    sink.close()
    print("panic sent (CC64/120/123)")


if __name__ == "__main__":
    main()
