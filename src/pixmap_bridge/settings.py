"""Pixmap request settings

Caller settings are validated against a JSON Schema (Draft-07) and normalized
into PixmapSettings, which produces the params sent to the host script.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from pixmap_bridge.errors import PixmapBridgeError


RECT_SCHEMA = {
    "type": "object",
    "properties": {
        "top": {"type": "number"},
        "left": {"type": "number"},
        "bottom": {"type": "number"},
        "right": {"type": "number"},
    },
    "required": ["top", "left", "bottom", "right"],
}

SETTINGS_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "inputRect": RECT_SCHEMA,
        "outputRect": RECT_SCHEMA,
        "scaleX": {"type": "number", "exclusiveMinimum": 0},
        "scaleY": {"type": "number", "exclusiveMinimum": 0},
        "boundsOnly": {"type": "boolean"},
        "useSmartScaling": {"type": "boolean"},
        "includeAncestorMasks": {"type": "boolean"},
    },
}

_validator = Draft7Validator(SETTINGS_SCHEMA)


class InvalidSettings(PixmapBridgeError):
    """Settings do not match the settings schema"""

    def __init__(self, details: str):
        super().__init__(f"Invalid pixmap settings:\n{details}")
        self.details = details


@dataclass
class PixmapSettings:
    """Normalized pixmap settings"""
    input_rect: Optional[Dict[str, float]] = None
    output_rect: Optional[Dict[str, float]] = None
    scale_x: float = 1
    scale_y: float = 1
    bounds_only: bool = False
    use_smart_scaling: bool = False
    include_ancestor_masks: bool = False

    @classmethod
    def from_dict(cls, settings: Optional[Dict[str, Any]]) -> "PixmapSettings":
        """Validate and normalize caller settings

        Raises:
            InvalidSettings: If settings violate the schema
        """
        if settings is None:
            settings = {}

        errors = sorted(_validator.iter_errors(settings), key=lambda e: [str(p) for p in e.path])
        if errors:
            raise InvalidSettings("\n".join(f"  - {e.message}" for e in errors))

        return cls(
            input_rect=settings.get("inputRect"),
            output_rect=settings.get("outputRect"),
            scale_x=settings.get("scaleX", 1),
            scale_y=settings.get("scaleY", 1),
            bounds_only=settings.get("boundsOnly", False),
            use_smart_scaling=settings.get("useSmartScaling", False),
            include_ancestor_masks=settings.get("includeAncestorMasks", False),
        )

    def to_params(self, document_id: int, layer_id: int) -> Dict[str, Any]:
        """Build the params passed to the pixmap script

        Bounds are always requested so the terminal textual message carries them.
        """
        return {
            "documentId": document_id,
            "layerId": layer_id,
            "inputRect": self.input_rect,
            "outputRect": self.output_rect,
            "scaleX": self.scale_x,
            "scaleY": self.scale_y,
            "bounds": True,
            "boundsOnly": self.bounds_only,
            "useSmartScaling": self.use_smart_scaling,
            "includeAncestorMasks": self.include_ancestor_masks,
        }
