from __future__ import annotations

import math

PITCH_WHEEL_SENTINEL = 128
PITCH_BEND_MAX = 16383
VOLUME_CC = 7


def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def value_from_float(f: float) -> int:
    """Map a normalised 0..1 float to a 7-bit value (f * 128, rounded, clamped)."""
    x = float(f)
    if math.isnan(x):
        return 0
    # Large finite inputs overflow to inf once scaled
    scaled = x * 128
    if math.isinf(scaled):
        return 127 if scaled > 0 else 0
    return clamp(int(round(scaled)), 0, 127)


def channel_from_raw(raw: int) -> int:
    """Remote channels are 1-based; MIDI channels are 0..15."""
    return clamp(int(raw) - 1, 0, 15)


def number_from_raw(raw: int, allow_pitch_wheel: bool = False) -> int:
    n = int(raw)
    if allow_pitch_wheel and n == PITCH_WHEEL_SENTINEL:
        return n
    return clamp(n, 0, 127)


def pitch_bend_from_value(value: int) -> int:
    """Rescale a 7-bit value into the 14-bit pitch-bend range (0..16383)."""
    return clamp(int(value) * 128, 0, PITCH_BEND_MAX)


def invert(value: int) -> int:
    return 127 - clamp(int(value), 0, 127)
