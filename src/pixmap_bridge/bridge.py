"""Caller-facing pixmap API"""

from typing import Any, Dict, Optional

from pixmap_bridge import log
from pixmap_bridge.config import BridgeConfig
from pixmap_bridge.coordinator import RequestCoordinator
from pixmap_bridge.host_connection import HostConnection
from pixmap_bridge.settings import PixmapSettings


class PixmapBridge:
    """Fetches layer pixmaps (or just their bounds) from the host"""

    def __init__(self, coordinator: RequestCoordinator):
        self.coordinator = coordinator

    @classmethod
    def for_connection(
        cls,
        connection: HostConnection,
        config: Optional[BridgeConfig] = None,
    ) -> "PixmapBridge":
        if config is None:
            config = BridgeConfig()
        coordinator = RequestCoordinator(
            connection.execute_script,
            connection.channels,
            script_ref=config.pixmap_script,
            waiter_timeout=config.waiter_timeout,
        )
        return cls(coordinator)

    async def get_pixmap(
        self,
        document_id: int,
        layer_id: int,
        settings: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Fetch one layer's pixmap annotated with its bounds

        With settings["boundsOnly"] set, only the bounds are returned.

        Args:
            document_id: Host document id
            layer_id: Layer id within the document
            settings: inputRect, outputRect, scaleX, scaleY, boundsOnly,
                useSmartScaling, includeAncestorMasks

        Returns:
            A Pixmap with .bounds set, or the bounds value alone

        Raises:
            InvalidSettings: If settings do not match the settings schema
            PixmapBridgeError: If the request fails
        """
        if settings is None:
            log.warn("Bridge", "Call to get_pixmap without settings - outdated plugin?")
        params = PixmapSettings.from_dict(settings).to_params(document_id, layer_id)
        return await self.coordinator.perform(params)
