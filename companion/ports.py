"""Output target discovery.

The rest of the companion only sees two capabilities: enumerate the
output targets and open one by name. Which port to look for, and what to
tell the user when it is missing, depends on the platform and lives here.
"""

from __future__ import annotations

import sys
from typing import Iterable, List, Optional

import mido


WINDOWS_PORT = "LoopBe Internal MIDI"
MACOS_PORT = "IAC Driver Bus 1"

WINDOWS_HINT = """\
To use this app, the LoopBe1 virtual MIDI device must be installed and enabled.
Download it from https://www.nerds.de/data/setuploopbe1.exe and restart the app."""

MACOS_HINT = """\
To use this app, the IAC Driver must be enabled:
1. Open the 'Audio MIDI Setup' application (Applications > Utilities).
2. Select 'Window' -> 'Show MIDI Studio'.
3. Double-click the 'IAC Driver' icon to open its properties.
4. Check 'Device is online', then restart the app."""

GENERIC_HINT = """\
No MIDI output port matched. Create a virtual port (e.g. 'snd-virmidi' on
Linux) or pass --port with a substring of an available port name."""


class PortNotFoundError(LookupError):
    pass


def default_port_name(platform: Optional[str] = None) -> Optional[str]:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WINDOWS_PORT
    if platform == "darwin":
        return MACOS_PORT
    return None


def setup_hint(platform: Optional[str] = None) -> str:
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WINDOWS_HINT
    if platform == "darwin":
        return MACOS_HINT
    return GENERIC_HINT


def list_output_names() -> List[str]:
    return list(mido.get_output_names())


def find_output(names: Iterable[str], name_filter: Optional[str]) -> Optional[str]:
    """First name containing ``name_filter``; first name at all when no filter."""
    names = list(names)
    if not name_filter:
        return names[0] if names else None
    for name in names:
        if name_filter in name:
            return name
    return None


def open_output(name_filter: Optional[str] = None):
    """Open the output port matching ``name_filter`` (or the platform default).

    Raises PortNotFoundError when nothing matches.
    """
    name_filter = name_filter or default_port_name()
    names = list_output_names()
    for name in names:
        print(f"[midi] found output: {name}", flush=True)
    name = find_output(names, name_filter)
    if name is None:
        raise PortNotFoundError(f"port not found: {name_filter or '<any>'}")
    print(f"[midi] using output: {name}", flush=True)
    return mido.open_output(name)
