"""Pixmap Bridge - correlated pixmap requests against a host process

A pixmap request dispatches one script on the host and then gathers the
script's textual messages and its pixmap, which arrive independently and in
no fixed order, into a single result.
"""

from pixmap_bridge.errors import (
    PixmapBridgeError,
    DispatchFailure,
    ChannelFailure,
    HostExited,
    WaiterTimeout,
    UnexpectedResponseShape,
)

from pixmap_bridge.waiter import Waiter, WaiterAlreadySettled

from pixmap_bridge.registry import (
    CorrelationRegistry,
    HostChannels,
    RegistryError,
    DuplicateRegistration,
    TEXT_CHANNEL,
    BINARY_CHANNEL,
)

from pixmap_bridge.collector import (
    TextualStreamCollector,
    BinarySlot,
    CollectorState,
    is_terminal_message,
)

from pixmap_bridge.coordinator import RequestCoordinator, RequestContext, shape_result

from pixmap_bridge.frame import Frame, FrameType, MessageId, FrameError, FrameDecodeError

from pixmap_bridge.frame_io import AsyncFrameReader, AsyncFrameWriter, FrameTooLarge

from pixmap_bridge.host_connection import HostConnection

from pixmap_bridge.pixmap import Pixmap, PixmapDecodeError, decode_pixmap

from pixmap_bridge.settings import PixmapSettings, InvalidSettings

from pixmap_bridge.config import BridgeConfig

from pixmap_bridge.bridge import PixmapBridge

from pixmap_bridge.shim import install, should_install

__all__ = [
    "PixmapBridgeError",
    "DispatchFailure",
    "ChannelFailure",
    "HostExited",
    "WaiterTimeout",
    "UnexpectedResponseShape",
    "Waiter",
    "WaiterAlreadySettled",
    "CorrelationRegistry",
    "HostChannels",
    "RegistryError",
    "DuplicateRegistration",
    "TEXT_CHANNEL",
    "BINARY_CHANNEL",
    "TextualStreamCollector",
    "BinarySlot",
    "CollectorState",
    "is_terminal_message",
    "RequestCoordinator",
    "RequestContext",
    "shape_result",
    "Frame",
    "FrameType",
    "MessageId",
    "FrameError",
    "FrameDecodeError",
    "AsyncFrameReader",
    "AsyncFrameWriter",
    "FrameTooLarge",
    "HostConnection",
    "Pixmap",
    "PixmapDecodeError",
    "decode_pixmap",
    "PixmapSettings",
    "InvalidSettings",
    "BridgeConfig",
    "PixmapBridge",
    "install",
    "should_install",
]
