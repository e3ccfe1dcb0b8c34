from __future__ import annotations

from typing import List, Tuple

import mido


class CoreSink:
    """Abstract sink interface used by Translator."""

    def note_on(self, channel: int, note: int, velocity: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def note_off(self, channel: int, note: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def control_change(self, channel: int, control: int, value: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def pitch_bend(self, channel: int, value: int) -> None:  # pragma: no cover - interface
        """``value`` is the unsigned 14-bit amount, 0..16383 (8192 = centre)."""
        raise NotImplementedError

    def panic(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class VirtualSink(CoreSink):
    """A minimal sink capturing events for tests and demos.

    Records tuples like (type, channel, number, value). Types: 'on', 'off',
    'cc', 'bend', 'panic'.
    """

    def __init__(self) -> None:
        self.events: List[Tuple[str, int, int, int]] = []

    def note_on(self, channel: int, note: int, velocity: int) -> None:
        self.events.append(("on", channel, note, velocity))

    def note_off(self, channel: int, note: int) -> None:
        self.events.append(("off", channel, note, 0))

    def control_change(self, channel: int, control: int, value: int) -> None:
        self.events.append(("cc", channel, control, value))

    def pitch_bend(self, channel: int, value: int) -> None:
        self.events.append(("bend", channel, 0, value))

    def panic(self) -> None:
        self.events.append(("panic", -1, -1, 0))


class MidoSink(CoreSink):
    """Forwards events to a mido output port.

    Send failures are logged and the event is lost; nothing is raised back to
    the message path.
    """

    def __init__(self, out_port):
        self.out = out_port
        self.failed_sends = 0

    def _send(self, msg: mido.Message) -> None:
        try:
            self.out.send(msg)
        except Exception as e:
            self.failed_sends += 1
            print(f"[midi] send failed ({msg.type}): {e}", flush=True)

    def note_on(self, channel: int, note: int, velocity: int) -> None:
        self._send(mido.Message("note_on", note=int(note), velocity=int(velocity), channel=int(channel)))

    def note_off(self, channel: int, note: int) -> None:
        self._send(mido.Message("note_off", note=int(note), velocity=0, channel=int(channel)))

    def control_change(self, channel: int, control: int, value: int) -> None:
        self._send(mido.Message("control_change", control=int(control), value=int(max(0, min(127, value))), channel=int(channel)))

    def pitch_bend(self, channel: int, value: int) -> None:
        # mido expresses pitch as signed -8192..8191
        pitch = int(max(0, min(16383, value))) - 8192
        self._send(mido.Message("pitchwheel", pitch=pitch, channel=int(channel)))

    def panic(self) -> None:
        # Send All Notes Off across all channels
        for ch in range(16):
            # Sustain off
            self._send(mido.Message("control_change", control=64, value=0, channel=ch))
            # All Sound Off (120) then All Notes Off (123)
            self._send(mido.Message("control_change", control=120, value=0, channel=ch))
            self._send(mido.Message("control_change", control=123, value=0, channel=ch))

    def close(self) -> None:
        close = getattr(self.out, "close", None)
        if close is not None:
            close()
