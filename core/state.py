# core/state.py

from dataclasses import dataclass, field
from typing import Any, Optional

from spatial.entities import Position


@dataclass(frozen=True)
class Participant:
    """Read-only snapshot of a connected participant."""

    participant_id: str
    name: str
    x: int
    y: int
    cluster_id: Optional[str] = None

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the transport layer."""
        return {
            "id": self.participant_id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "cluster_id": self.cluster_id,
        }


@dataclass(frozen=True)
class Cluster:
    """Read-only snapshot of a cluster."""

    cluster_id: str
    members: tuple[str, ...]
    center_x: int
    center_y: int

    @property
    def center(self) -> Position:
        return (self.center_x, self.center_y)

    @property
    def size(self) -> int:
        return len(self.members)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "members": list(self.members),
            "center_x": self.center_x,
            "center_y": self.center_y,
        }


@dataclass
class ParticipantRecord:
    """Live participant state owned by the universe."""

    participant_id: str
    name: str
    x: int
    y: int
    cluster_id: Optional[str] = None

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    def move_to(self, position: Position) -> None:
        self.x, self.y = position

    def snapshot(self) -> Participant:
        return Participant(
            participant_id=self.participant_id,
            name=self.name,
            x=self.x,
            y=self.y,
            cluster_id=self.cluster_id,
        )


@dataclass
class ClusterRecord:
    """Live cluster state owned by the universe.

    ``members`` is a dict used as an insertion-ordered set of participant ids.
    """

    cluster_id: str
    center_x: int = 0
    center_y: int = 0
    members: dict[str, None] = field(default_factory=dict)

    @property
    def center(self) -> Position:
        return (self.center_x, self.center_y)

    def add_member(self, participant_id: str) -> None:
        self.members[participant_id] = None

    def discard_member(self, participant_id: str) -> None:
        self.members.pop(participant_id, None)

    def snapshot(self) -> Cluster:
        return Cluster(
            cluster_id=self.cluster_id,
            members=tuple(self.members),
            center_x=self.center_x,
            center_y=self.center_y,
        )
