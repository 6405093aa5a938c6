"""Bridge configuration

Supports configuration via:
1. Builder methods (highest priority)
2. Environment variables (PIXMAP_BRIDGE_SCRIPT, PIXMAP_BRIDGE_WAITER_TIMEOUT,
   PIXMAP_BRIDGE_FORCE_SHIM, PIXMAP_BRIDGE_HOST_VERSION, PIXMAP_BRIDGE_MAX_FRAME)
3. Default values
"""

import os
from typing import Optional

from pixmap_bridge.frame_io import DEFAULT_MAX_FRAME


DEFAULT_PIXMAP_SCRIPT = "./jsx/getLayerPixmap.jsx"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


class BridgeConfig:
    """Configuration for the pixmap bridge"""

    def __init__(
        self,
        pixmap_script: Optional[str] = None,
        waiter_timeout: Optional[float] = None,
        force_shim: Optional[bool] = None,
        host_version: Optional[str] = None,
        max_frame: Optional[int] = None,
    ):
        """Create configuration, falling back to the environment then defaults

        Args:
            pixmap_script: Script reference dispatched for each pixmap request
            waiter_timeout: Seconds to wait for each message; None waits forever
            force_shim: Install the bounds shim regardless of host version
            host_version: Host version string used for the install decision
            max_frame: Largest frame accepted from the host, in bytes
        """
        if pixmap_script is None:
            pixmap_script = os.getenv("PIXMAP_BRIDGE_SCRIPT", DEFAULT_PIXMAP_SCRIPT)

        if waiter_timeout is None:
            waiter_timeout = _env_float("PIXMAP_BRIDGE_WAITER_TIMEOUT")

        if force_shim is None:
            force_shim = os.getenv("PIXMAP_BRIDGE_FORCE_SHIM", "").lower() in _TRUE_VALUES

        if host_version is None:
            host_version = os.getenv("PIXMAP_BRIDGE_HOST_VERSION") or None

        if max_frame is None:
            max_frame = int(os.getenv("PIXMAP_BRIDGE_MAX_FRAME", DEFAULT_MAX_FRAME))

        if waiter_timeout is not None and waiter_timeout <= 0:
            raise ValueError("waiter_timeout must be positive")

        self.pixmap_script = pixmap_script
        self.waiter_timeout = waiter_timeout
        self.force_shim = force_shim
        self.host_version = host_version
        self.max_frame = max_frame

    def with_pixmap_script(self, script: str) -> "BridgeConfig":
        self.pixmap_script = script
        return self

    def with_waiter_timeout(self, timeout: Optional[float]) -> "BridgeConfig":
        """Set a per-waiter timeout in seconds (None disables it)"""
        if timeout is not None and timeout <= 0:
            raise ValueError("waiter_timeout must be positive")
        self.waiter_timeout = timeout
        return self

    def with_force_shim(self, force: bool) -> "BridgeConfig":
        self.force_shim = force
        return self

    def with_host_version(self, version: Optional[str]) -> "BridgeConfig":
        self.host_version = version
        return self

    def with_max_frame(self, max_frame: int) -> "BridgeConfig":
        self.max_frame = max_frame
        return self

    def __repr__(self):
        return (
            f"BridgeConfig(pixmap_script={self.pixmap_script!r}, "
            f"waiter_timeout={self.waiter_timeout!r}, force_shim={self.force_shim!r}, "
            f"host_version={self.host_version!r}, max_frame={self.max_frame!r})"
        )
