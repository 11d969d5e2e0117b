"""Core GravityChat components. Import Universe from core.universe."""

from .config import GravityChatConfig
from .connections import ConnectionManager
from .exceptions import (
    ClusterNotFoundError,
    GravityChatException,
    MessageValidationError,
    ParticipantNotFoundError,
    TransportException,
    UniverseException,
)
from .frames import Frame, FrameType, FrameValidator
from .state import Cluster, ClusterRecord, Participant, ParticipantRecord

__all__ = [
    # Core classes
    "Participant",
    "Cluster",
    "ParticipantRecord",
    "ClusterRecord",
    "GravityChatConfig",
    "ConnectionManager",
    "Frame",
    "FrameType",
    "FrameValidator",
    # Exceptions
    "GravityChatException",
    "UniverseException",
    "ParticipantNotFoundError",
    "ClusterNotFoundError",
    "TransportException",
    "MessageValidationError",
]
