"""Error types for pixmap requests

Every failure a caller can observe from a pixmap request derives from
PixmapBridgeError. None of them is retried internally.
"""

import json
from typing import Any


class PixmapBridgeError(Exception):
    """Base error for the pixmap bridge"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DispatchFailure(PixmapBridgeError):
    """Host rejected or could not start the operation"""
    pass


class ChannelFailure(PixmapBridgeError):
    """A registered waiter failed instead of resolving"""

    def __init__(self, code: str, message: str):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.error_message = message


class HostExited(ChannelFailure):
    """Host connection closed while requests were pending"""

    def __init__(self):
        super().__init__("HOST_EXITED", "Host connection closed unexpectedly")


class WaiterTimeout(ChannelFailure):
    """No message arrived within the configured waiter timeout"""

    def __init__(self, channel: str, timeout: float):
        super().__init__("TIMEOUT", f"No {channel} message within {timeout}s")
        self.channel = channel
        self.timeout = timeout


def _describe_text(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


class UnexpectedResponseShape(PixmapBridgeError):
    """Joined outcomes match no recognized combination"""

    def __init__(self, text_outcome: Any, binary_outcome: Any):
        super().__init__(
            "Unexpected response from host in getLayerPixmap: textual value: "
            f"{_describe_text(text_outcome)}, pixmap value: "
            f"{'truthy' if binary_outcome else 'falsy'}"
        )
        self.text_outcome = text_outcome
        self.binary_outcome = binary_outcome
