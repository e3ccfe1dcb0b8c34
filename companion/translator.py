from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral, Real
from typing import Any, Dict, Optional, Sequence, Tuple

from companion.midi_out import CoreSink
from companion.rate_limiter import RateLimiter
from companion.scaling import (
    PITCH_WHEEL_SENTINEL,
    VOLUME_CC,
    channel_from_raw,
    invert,
    number_from_raw,
    pitch_bend_from_value,
    value_from_float,
)
from companion.session import SessionHandler
from companion.settings import BridgeConfig


ADDRESS_PARTS = 3
DATA_PARTS = 3

NOTE_ON = "note_on"
NOTE_OFF = "note_off"
CONTROL_CHANGE = "control_change"
PITCH_BEND = "pitch_bend"

CONTROL_TOPICS = ("noteon", "noteoff", "parameter", "volume")


@dataclass(frozen=True)
class ControlEvent:
    kind: str
    channel: int
    number: int
    value: int


def emit(sink: CoreSink, event: ControlEvent) -> None:
    if event.kind == NOTE_ON:
        sink.note_on(event.channel, event.number, event.value)
    elif event.kind == NOTE_OFF:
        sink.note_off(event.channel, event.number)
    elif event.kind == CONTROL_CHANGE:
        sink.control_change(event.channel, event.number, event.value)
    elif event.kind == PITCH_BEND:
        sink.pitch_bend(event.channel, event.value)


def split_address(address: str) -> Tuple[str, ...]:
    return tuple(address.lstrip("/").split("/"))


def _as_int(x: Any) -> Optional[int]:
    if isinstance(x, bool):
        return None
    if isinstance(x, Integral):
        return int(x)
    if isinstance(x, Real) and float(x).is_integer():
        return int(x)
    return None


def parse_payload(args: Sequence[Any]) -> Optional[Tuple[float, int, int]]:
    """Return (value, channel, number) or None when the payload is not (float, int, int)."""
    if len(args) != DATA_PARTS:
        return None
    f, raw_channel, raw_number = args
    if isinstance(f, bool) or not isinstance(f, Real):
        return None
    channel = _as_int(raw_channel)
    number = _as_int(raw_number)
    if channel is None or number is None:
        return None
    return float(f), channel, number


class Translator:
    """Turns inbound OSC messages into MIDI control events.

    - Address must be ``/<a>/<b>/<topic>``; payload (float, int, int).
    - Malformed messages warn once per Translator, then drop silently.
    - ``parameter`` and ``volume`` pass through the rate limiter; notes never do.
    - Not thread-safe: the caller serialises ``handle``.
    """

    def __init__(
        self,
        config: BridgeConfig,
        sink: CoreSink,
        limiter: Optional[RateLimiter] = None,
        session: Optional[SessionHandler] = None,
    ) -> None:
        self.config = config
        self.sink = sink
        self.limiter = limiter or RateLimiter(
            config.settings.max_parameter_message_rate,
            verbose=config.verbose,
        )
        self.session = session or SessionHandler()
        self._warned_malformed = False
        self.metrics: Dict[str, int] = {
            "msgs_note_on": 0,
            "msgs_note_off": 0,
            "msgs_cc": 0,
            "msgs_pitch_bend": 0,
            "dropped_rate": 0,
            "malformed": 0,
            "unknown_topic": 0,
        }

    def get_metrics(self) -> Dict[str, int]:
        return dict(self.metrics)

    # --- Public entry ---
    def handle(self, address: str, args: Sequence[Any]) -> Optional[ControlEvent]:
        """Process one inbound message; return the emitted event, if any."""
        parts = split_address(address)
        payload = parse_payload(args)
        if len(parts) != ADDRESS_PARTS or not all(parts) or payload is None:
            self._on_malformed(len(parts), len(args))
            return None

        topic = parts[2]
        if topic == "connect":
            self.session.on_connect(payload[1])
            return None
        if topic == "disconnect":
            self.session.on_disconnect()
            return None
        if topic not in CONTROL_TOPICS:
            self.metrics["unknown_topic"] += 1
            if self.config.verbose:
                print(f"[osc] topic not implemented: {address}", flush=True)
            return None

        event = self.resolve(topic, *payload)
        if event is None:
            return None
        self._count(event)
        emit(self.sink, event)
        return event

    def resolve(self, topic: str, f: float, raw_channel: int, raw_number: int) -> Optional[ControlEvent]:
        """Map a control topic + payload to an event; None when rate limited."""
        value = value_from_float(f)
        channel = channel_from_raw(raw_channel)
        verbose = self.config.verbose

        if topic == "noteon":
            number = number_from_raw(raw_number)
            if verbose:
                print(f"[osc] note on: {number} on channel {channel} with velocity {value}", flush=True)
            return ControlEvent(NOTE_ON, channel, number, value)

        if topic == "noteoff":
            number = number_from_raw(raw_number)
            if verbose:
                print(f"[osc] note off: {number} on channel {channel}", flush=True)
            return ControlEvent(NOTE_OFF, channel, number, 0)

        if self.limiter.should_drop():
            self.metrics["dropped_rate"] += 1
            return None

        if topic == "volume":
            return ControlEvent(CONTROL_CHANGE, channel, VOLUME_CC, value)

        # parameter: the pitch-wheel sentinel survives the clamp
        number = self.config.remap(number_from_raw(raw_number, allow_pitch_wheel=True))
        if self.config.is_inverted(number):
            value = invert(value)
        if number == PITCH_WHEEL_SENTINEL:
            return ControlEvent(PITCH_BEND, channel, 0, pitch_bend_from_value(value))
        return ControlEvent(CONTROL_CHANGE, channel, number_from_raw(number), value)

    # --- Internals ---
    def _on_malformed(self, n_parts: int, n_args: int) -> None:
        self.metrics["malformed"] += 1
        if self._warned_malformed:
            return
        self._warned_malformed = True
        print(
            f"[osc] received message with incorrect format ({n_parts}, {n_args}); "
            "make sure the remote app and this companion are up to date",
            flush=True,
        )

    def _count(self, event: ControlEvent) -> None:
        if event.kind == NOTE_ON:
            self.metrics["msgs_note_on"] += 1
        elif event.kind == NOTE_OFF:
            self.metrics["msgs_note_off"] += 1
        elif event.kind == PITCH_BEND:
            self.metrics["msgs_pitch_bend"] += 1
        else:
            self.metrics["msgs_cc"] += 1
