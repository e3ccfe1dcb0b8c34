from __future__ import annotations

import random
import time
from typing import Callable, Dict, Optional


MEASURE_INTERVAL = 0.10
SAFETY_FACTOR = 0.5


class RateLimiter:
    """Probabilistic admission control for continuous-controller traffic.

    - The incoming rate is re-measured whenever the window is older than
      MEASURE_INTERVAL, or early once it holds more than max_rate messages.
    - Above max_rate the pass probability is (max_rate / rate) * SAFETY_FACTOR,
      otherwise 1.0. Each message is admitted if a uniform draw does not
      exceed it.
    - max_rate == 0 disables dropping; the rate is still measured when
      verbose so it can be logged.

    Not thread-safe: callers serialise access.
    """

    def __init__(
        self,
        max_rate: int,
        verbose: bool = False,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.max_rate = max(0, int(max_rate))
        self.verbose = verbose
        self._clock = clock
        self._rng = rng or random.Random()
        self.messages_since_window_start: int = 0
        self.window_start: float = clock()
        self.current_rate: float = 0.0
        self.pass_probability: float = 1.0
        self.dropped: int = 0

    @property
    def enabled(self) -> bool:
        return self.max_rate > 0

    def should_drop(self) -> bool:
        if not self.enabled and not self.verbose:
            return False
        self.messages_since_window_start += 1
        now = self._clock()
        elapsed = now - self.window_start
        early_trip = self.enabled and self.messages_since_window_start > self.max_rate
        if elapsed > MEASURE_INTERVAL or early_trip:
            self.current_rate = self.messages_since_window_start / max(1e-6, elapsed)
            self.window_start = now
            self.messages_since_window_start = 0
            if self.verbose:
                print(f"[rate] messages per second: {self.current_rate:.1f}", flush=True)
        if not self.enabled:
            return False
        if self.current_rate > self.max_rate:
            overload = self.current_rate / self.max_rate
            self.pass_probability = max(0.0, min(1.0, (1.0 / overload) * SAFETY_FACTOR))
        else:
            self.pass_probability = 1.0
        if self._rng.random() > self.pass_probability:
            self.dropped += 1
            if self.verbose:
                print("[rate] dropped message to limit message rate", flush=True)
            return True
        return False

    def snapshot(self) -> Dict[str, float]:
        return {
            "maxRate": self.max_rate,
            "rate": round(self.current_rate, 3),
            "passProbability": round(self.pass_probability, 4),
            "dropped": self.dropped,
        }
