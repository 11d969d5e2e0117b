# core/frames.py

"""WebSocket frames exchanged between the transport layer and clients."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import MessageValidationError


class FrameType(str, Enum):
    """Frame type enumeration."""

    # Server -> client
    UNIVERSE_INIT = "universe_init"
    CLUSTER_UPDATE = "cluster_update"
    CLUSTER_NOTIFICATION = "cluster_notification"
    RECEIVE_CLUSTER_MESSAGE = "receive_cluster_message"
    RECEIVE_PRIVATE_MESSAGE = "receive_private_message"
    PRIVATE_NOTIFICATION = "private_notification"
    ERROR = "error"

    # Client -> server
    CLUSTER_MESSAGE = "cluster_message"
    PRIVATE_MESSAGE = "private_message"


@dataclass(frozen=True)
class Frame:
    """Immutable frame: a type tag plus a JSON-compatible payload."""

    frame_type: FrameType
    data: Any = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.frame_type.value, "data": self.data}

    @classmethod
    def from_dict(cls, raw: Any) -> "Frame":
        """Parse and validate a client frame.

        Raises:
            MessageValidationError: If the frame is malformed or not a client frame type
        """
        if not isinstance(raw, dict):
            raise MessageValidationError(f"Frame must be a JSON object, got {type(raw).__name__}")

        try:
            frame_type = FrameType(raw.get("type"))
        except ValueError:
            raise MessageValidationError(f"Unknown frame type: {raw.get('type')!r}") from None

        frame = cls(frame_type=frame_type, data=raw.get("data", {}))
        FrameValidator.validate(frame)
        return frame


class FrameValidator:
    """Lightweight validator for client frame payloads."""

    SCHEMAS: dict[str, dict[str, Any]] = {
        FrameType.CLUSTER_MESSAGE: {
            "required": ["cluster_id", "message"],
            "types": {"cluster_id": str, "message": str},
        },
        FrameType.PRIVATE_MESSAGE: {
            "required": ["target_id", "message"],
            "types": {"target_id": str, "message": str},
        },
    }

    @classmethod
    def validate(cls, frame: Frame) -> None:
        """Validate a client frame against its schema.

        Raises:
            MessageValidationError: If validation fails
        """
        schema = cls.SCHEMAS.get(frame.frame_type)
        if not schema:
            raise MessageValidationError(f"Frame type {frame.frame_type.value} cannot be sent by clients")

        if not isinstance(frame.data, dict):
            raise MessageValidationError(f"Frame {frame.frame_type.value} data must be an object")

        for field_name in schema["required"]:
            if field_name not in frame.data:
                raise MessageValidationError(
                    f"Frame {frame.frame_type.value} missing required field: {field_name}"
                )

        for field_name, expected_type in schema["types"].items():
            value = frame.data[field_name]
            if not isinstance(value, expected_type):
                raise MessageValidationError(
                    f"Frame {frame.frame_type.value} field '{field_name}' has wrong type: "
                    f"expected {expected_type.__name__}, got {type(value).__name__}"
                )
