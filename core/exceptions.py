# core/exceptions.py

"""Exception hierarchy for GravityChat.

The universe itself never raises for unknown identifiers; these exceptions are
used at the transport edge where a missing participant or cluster must be
reported to a client.
"""


class GravityChatException(Exception):
    """Base exception for all GravityChat errors."""

    pass


# Universe Exceptions
class UniverseException(GravityChatException):
    """Base exception for universe lookups."""

    pass


class ParticipantNotFoundError(UniverseException):
    """Raised when a participant id is not connected."""

    def __init__(self, participant_id: str):
        super().__init__(f"Participant not found: {participant_id}")
        self.participant_id = participant_id


class ClusterNotFoundError(UniverseException):
    """Raised when a cluster id does not exist (or has dissolved)."""

    def __init__(self, cluster_id: str):
        super().__init__(f"Cluster not found: {cluster_id}")
        self.cluster_id = cluster_id


# Transport Exceptions
class TransportException(GravityChatException):
    """Base exception for the WebSocket transport."""

    pass


class MessageValidationError(TransportException):
    """Raised when a client frame is malformed or of an unknown type."""

    pass
