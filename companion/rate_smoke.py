from __future__ import annotations

import argparse
import random

from companion.rate_limiter import RateLimiter


class SimClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def run(max_rate: int, msg_rate: float, seconds: float, seed: int = 0) -> dict:
    """Feed a limiter a steady stream on a simulated clock and tally admissions."""
    clock = SimClock()
    lim = RateLimiter(max_rate, clock=clock, rng=random.Random(seed))
    interval = 1.0 / msg_rate
    total = int(msg_rate * seconds)
    admitted = 0
    for _ in range(total):
        clock.now += interval
        if not lim.should_drop():
            admitted += 1
    return {
        "sent": total,
        "admitted": admitted,
        "admittedPerSecond": admitted / seconds if seconds > 0 else 0.0,
        "passProbability": lim.pass_probability,
        "measuredRate": lim.current_rate,
    }


def main():
    ap = argparse.ArgumentParser(description="Rate limiter smoke test on a simulated clock")
    ap.add_argument("--max-rate", type=int, default=300)
    ap.add_argument("--msg-rate", type=float, default=1200.0)
    ap.add_argument("--seconds", type=float, default=5.0)
    ap.add_argument("--seed", type=int, default=0)
    args = ap.parse_args()
    r = run(args.max_rate, args.msg_rate, args.seconds, args.seed)
    print(f"max_rate={args.max_rate} msg_rate={args.msg_rate} seconds={args.seconds}")
    print(
        f"sent={r['sent']} admitted={r['admitted']} admitted/s={r['admittedPerSecond']:.1f} "
        f"pass_p={r['passProbability']:.3f} measured={r['measuredRate']:.1f}/s"
    )


if __name__ == "__main__":
    main()
