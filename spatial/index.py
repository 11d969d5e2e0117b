# spatial/index.py

"""Spatial indexing using R-tree for participant proximity queries."""

import rtree.index

from core.logging import get_logger

from .entities import Position, calculate_distance

logger = get_logger(__name__)


class SpatialIndex:
    """R-tree based spatial index for participant positions.

    Radius queries use the R-tree to collect candidates inside a bounding box
    and then filter them with the truncated Euclidean distance, so the index
    agrees exactly with every other distance computation in the universe.
    """

    def __init__(self):
        """Initialize spatial index with a 2D R-tree backend."""
        self._rtree = self._new_rtree()

        # Track participant positions for updates and deletes
        self._positions: dict[str, Position] = {}

        # rtree requires integer keys
        self._keys: dict[str, int] = {}
        self._next_key = 0

        self.logger = get_logger(f"{__name__}.SpatialIndex")
        self.logger.debug("spatial_index.created")

    @staticmethod
    def _new_rtree() -> rtree.index.Index:
        properties = rtree.index.Property()
        properties.dimension = 2
        return rtree.index.Index(properties=properties)

    @staticmethod
    def _bbox(position: Position) -> tuple[int, int, int, int]:
        # Point with no extent
        return (position[0], position[1], position[0], position[1])

    def insert(self, participant_id: str, position: Position) -> None:
        """Insert participant into spatial index.

        Args:
            participant_id: Participant identifier
            position: (x, y) position
        """
        if participant_id in self._positions:
            self.update(participant_id, position)
            return

        key = self._next_key
        self._next_key += 1

        self._rtree.insert(key, self._bbox(position), obj=participant_id)
        self._keys[participant_id] = key
        self._positions[participant_id] = position

        self.logger.debug(
            "participant.indexed",
            participant_id=participant_id,
            position=position,
        )

    def update(self, participant_id: str, new_position: Position) -> None:
        """Move participant to a new position, inserting it if unknown."""
        if participant_id not in self._positions:
            self.insert(participant_id, new_position)
            return

        key = self._keys[participant_id]
        old_position = self._positions[participant_id]

        self._rtree.delete(key, self._bbox(old_position))
        self._rtree.insert(key, self._bbox(new_position), obj=participant_id)

        self._positions[participant_id] = new_position

    def remove(self, participant_id: str) -> None:
        """Remove participant from spatial index. Unknown ids are ignored."""
        if participant_id not in self._positions:
            return

        position = self._positions.pop(participant_id)
        key = self._keys.pop(participant_id)
        self._rtree.delete(key, self._bbox(position))

        self.logger.debug("participant.removed_from_index", participant_id=participant_id)

    def query_radius(self, center: Position, radius: int) -> list[str]:
        """Find participants whose truncated distance to center is <= radius.

        Args:
            center: Center position (x, y)
            radius: Search radius

        Returns:
            Participant ids ordered by (distance, id), nearest first
        """
        # Truncated distance <= radius holds for every true distance below radius + 1
        reach = radius + 1
        bbox = (
            center[0] - reach,
            center[1] - reach,
            center[0] + reach,
            center[1] + reach,
        )

        results = []
        for item in self._rtree.intersection(bbox, objects=True):
            participant_id = item.object
            position = self._positions.get(participant_id)
            if position is None:
                continue
            distance = calculate_distance(center, position)
            if distance <= radius:
                results.append((distance, participant_id))

        results.sort()
        return [participant_id for _, participant_id in results]

    def get_position(self, participant_id: str) -> Position | None:
        """Indexed position of a participant, or None."""
        return self._positions.get(participant_id)

    def get_entity_count(self) -> int:
        """Get total number of participants in index."""
        return len(self._positions)

    def clear(self) -> None:
        """Clear all participants from index."""
        self._rtree = self._new_rtree()
        self._positions.clear()
        self._keys.clear()

        self.logger.debug("spatial_index.cleared")
