"""Bounds shim installation flag

Hosts older than 2.0.2 return pixmaps without layer bounds. Whether to route
pixmap requests through the bounds-aware bridge is decided once at start time
from the host version; nothing is patched at runtime.
"""

from typing import Optional

import semver

from pixmap_bridge import log
from pixmap_bridge.bridge import PixmapBridge
from pixmap_bridge.config import BridgeConfig
from pixmap_bridge.host_connection import HostConnection


FIXED_IN_VERSION = semver.Version(2, 0, 2)


def parse_version(version: Optional[str]) -> Optional[semver.Version]:
    """Parse a semantic version; a leading "v" and missing minor/patch are accepted

    Pre-release tags are kept, so "2.0.2-beta.1" orders below "2.0.2".
    """
    if not version:
        return None
    text = version.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    try:
        return semver.Version.parse(text, optional_minor_and_patch=True)
    except (ValueError, TypeError):
        return None


def should_install(
    host_version: Optional[str],
    force: bool = False,
    already_present: bool = False,
) -> bool:
    """Decide whether the bounds shim is needed for this host"""
    if force:
        log.warn("Shim", "Installing getPixmap bounds shim because it was explicitly forced")
        return True

    if already_present:
        log.warn("Shim", "Skipping getPixmap bounds shim because it is already present")
        return False

    if host_version is None:
        log.warn("Shim", "Installing getPixmap bounds shim, but the host version is unknown")
        return True

    parsed = parse_version(host_version)
    if parsed is None:
        log.warn("Shim", f"Installing getPixmap bounds shim, but host version {host_version!r} is unparseable")
        return True

    if parsed < FIXED_IN_VERSION:
        log.warn("Shim", f"Installing getPixmap bounds shim because host version {host_version} is less than 2.0.2")
        return True

    log.warn("Shim", f"Skipping getPixmap bounds shim because host version {host_version} is at least 2.0.2")
    return False


def install(
    connection: HostConnection,
    config: Optional[BridgeConfig] = None,
    already_present: bool = False,
) -> Optional[PixmapBridge]:
    """Build the bounds-aware bridge if this host needs it

    Returns:
        A PixmapBridge, or None when the host's own pixmap call suffices
    """
    if config is None:
        config = BridgeConfig()

    if not should_install(config.host_version, config.force_shim, already_present):
        return None

    bridge = PixmapBridge.for_connection(connection, config)
    log.warn("Shim", "Shim installed successfully")
    return bridge
