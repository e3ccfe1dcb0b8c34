from __future__ import annotations

from typing import Any, Dict, Optional


# Remote-control API version this companion understands
API_VERSION = 0

SUPPORT_URL = "https://virtuoso-vr.com/remote-control/"


class SessionHandler:
    """Reacts to connect/disconnect notifications from the remote app."""

    def __init__(self, api_version: int = API_VERSION) -> None:
        self.api_version = api_version
        self.connected = False
        self.remote_version: Optional[int] = None
        self.version_mismatch = False

    def on_connect(self, remote_version: int) -> None:
        print("[session] remote sent connection message", flush=True)
        self.connected = True
        self.remote_version = int(remote_version)
        self.version_mismatch = self.remote_version > self.api_version
        if self.version_mismatch:
            print(
                f"[session] remote API version {self.remote_version} is newer than this app "
                f"({self.api_version}); it may not work as intended",
                flush=True,
            )
            print(f"[session] latest supported companions: {SUPPORT_URL}", flush=True)

    def on_disconnect(self) -> None:
        print("[session] remote sent disconnection message", flush=True)
        self.connected = False

    def snapshot(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "remoteVersion": self.remote_version,
            "apiVersion": self.api_version,
            "versionMismatch": self.version_mismatch,
        }
