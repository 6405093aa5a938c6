"""CBOR Frame Types for Host Communication

Frames exchanged with the host are CBOR maps with integer keys and native
binary payloads.

## Frame Format

{
  0: version (u8, always 1)
  1: frame_type (u8)
  2: id (uint)
  3: content_type (tstr, optional)
  4: meta (map, optional)
  5: payload (bstr, optional)
  6: script (tstr, optional - script reference for EXECUTE)
}

## Frame Types

- EXECUTE (1): Run a script on the host (client -> host)
- SCRIPT_RESULT (2): A textual message produced by a running script
- PIXMAP (3): Binary pixmap payload
- ERR (4): Error produced while running a script
"""

import json
from enum import IntEnum
from typing import Any, Dict, Optional

import cbor2


PROTOCOL_VERSION = 1


class FrameType(IntEnum):
    """Frame type discriminator"""
    EXECUTE = 1
    SCRIPT_RESULT = 2
    PIXMAP = 3
    ERR = 4

    @classmethod
    def from_u8(cls, v: int) -> Optional["FrameType"]:
        """Convert u8 to FrameType, returns None if invalid"""
        try:
            return cls(v)
        except ValueError:
            return None


class Keys:
    VERSION = 0
    FRAME_TYPE = 1
    ID = 2
    CONTENT_TYPE = 3
    META = 4
    PAYLOAD = 5
    SCRIPT = 6


class FrameError(Exception):
    """Base frame error"""
    pass


class FrameDecodeError(FrameError):
    """CBOR decoding or frame structure error"""
    pass


class FrameEncodeError(FrameError):
    """CBOR encoding error"""
    pass


class MessageId:
    """Correlation identifier assigned to one dispatched script"""

    def __init__(self, value: int):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"MessageId must be int, got {type(value)}")
        if value < 0:
            raise ValueError("MessageId must be non-negative")
        self.value = value

    def __eq__(self, other):
        if not isinstance(other, MessageId):
            return False
        return self.value == other.value

    def __hash__(self):
        return hash(("msg", self.value))

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return f"MessageId({self.value})"


class Frame:
    """A host protocol frame"""

    def __init__(
        self,
        frame_type: FrameType,
        id: MessageId,
        version: int = PROTOCOL_VERSION,
        content_type: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        payload: Optional[bytes] = None,
        script: Optional[str] = None,
    ):
        self.version = version
        self.frame_type = frame_type
        self.id = id
        self.content_type = content_type
        self.meta = meta
        self.payload = payload
        self.script = script

    @classmethod
    def execute(cls, id: MessageId, script_ref: str, params: Dict[str, Any]) -> "Frame":
        """Create an EXECUTE frame running script_ref with JSON params"""
        frame = cls(FrameType.EXECUTE, id)
        frame.script = script_ref
        frame.content_type = "application/json"
        frame.payload = json.dumps(params).encode("utf-8")
        return frame

    @classmethod
    def script_result(cls, id: MessageId, text: str) -> "Frame":
        frame = cls(FrameType.SCRIPT_RESULT, id)
        frame.content_type = "text/plain"
        frame.payload = text.encode("utf-8")
        return frame

    @classmethod
    def pixmap(cls, id: MessageId, data: bytes) -> "Frame":
        frame = cls(FrameType.PIXMAP, id)
        frame.content_type = "application/octet-stream"
        frame.payload = data
        return frame

    @classmethod
    def err(cls, id: MessageId, code: str, message: str) -> "Frame":
        frame = cls(FrameType.ERR, id)
        frame.meta = {"code": code, "message": message}
        return frame

    def text_value(self) -> Any:
        """Decode a SCRIPT_RESULT payload

        JSON text decodes to its value; anything else is returned as the raw
        string (hosts also report things like "[ActionDescriptor]").
        """
        text = (self.payload or b"").decode("utf-8", errors="replace")
        try:
            return json.loads(text)
        except ValueError:
            return text

    def params(self) -> Optional[Dict[str, Any]]:
        """Decode the JSON params of an EXECUTE frame"""
        if self.payload is None:
            return None
        return json.loads(self.payload.decode("utf-8"))

    def error_code(self) -> Optional[str]:
        if self.meta is None:
            return None
        return self.meta.get("code")

    def error_message(self) -> Optional[str]:
        if self.meta is None:
            return None
        return self.meta.get("message")

    def __repr__(self):
        return f"Frame({self.frame_type.name}, id={self.id})"


def encode_frame(frame: Frame) -> bytes:
    """Encode a frame to CBOR bytes

    Raises:
        FrameEncodeError: If encoding fails
    """
    frame_map = {
        Keys.VERSION: frame.version,
        Keys.FRAME_TYPE: int(frame.frame_type),
        Keys.ID: frame.id.value,
    }

    if frame.content_type is not None:
        frame_map[Keys.CONTENT_TYPE] = frame.content_type

    if frame.meta is not None:
        frame_map[Keys.META] = frame.meta

    if frame.payload is not None:
        frame_map[Keys.PAYLOAD] = frame.payload

    if frame.script is not None:
        frame_map[Keys.SCRIPT] = frame.script

    try:
        return cbor2.dumps(frame_map)
    except Exception as e:
        raise FrameEncodeError(f"CBOR encoding failed: {e}")


def decode_frame(data: bytes) -> Frame:
    """Decode a frame from CBOR bytes

    Raises:
        FrameDecodeError: If the bytes are not a valid frame
    """
    try:
        frame_map = cbor2.loads(data)
    except Exception as e:
        raise FrameDecodeError(f"CBOR decoding failed: {e}")

    if not isinstance(frame_map, dict):
        raise FrameDecodeError("expected map")

    version = frame_map.get(Keys.VERSION)
    if version is None:
        raise FrameDecodeError("missing version")

    frame_type_u8 = frame_map.get(Keys.FRAME_TYPE)
    if frame_type_u8 is None:
        raise FrameDecodeError("missing frame_type")
    if isinstance(frame_type_u8, bool):
        raise FrameDecodeError(f"invalid frame_type: {frame_type_u8!r}")

    frame_type = FrameType.from_u8(frame_type_u8)
    if frame_type is None:
        raise FrameDecodeError(f"invalid frame_type: {frame_type_u8}")

    id_value = frame_map.get(Keys.ID)
    # CBOR true/false decode to bool, which is an int subclass
    if isinstance(id_value, bool) or not isinstance(id_value, int) or id_value < 0:
        raise FrameDecodeError(f"invalid id: {id_value!r}")

    meta = frame_map.get(Keys.META)
    if meta is not None and not isinstance(meta, dict):
        raise FrameDecodeError("meta must be a map")

    payload = frame_map.get(Keys.PAYLOAD)
    if payload is not None and not isinstance(payload, bytes):
        raise FrameDecodeError("payload must be a byte string")

    return Frame(
        frame_type=frame_type,
        id=MessageId(id_value),
        version=version,
        content_type=frame_map.get(Keys.CONTENT_TYPE),
        meta=meta,
        payload=payload,
        script=frame_map.get(Keys.SCRIPT),
    )
