# core/universe.py

"""Spatial clustering store: places participants and keeps clusters consistent."""

import random
import threading
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from spatial.entities import (
    Position,
    adaptive_spawn_radius,
    calculate_distance,
    gravity_offset,
    mean_position,
    sample_spawn_position,
)
from spatial.index import SpatialIndex

from .config import GravityChatConfig
from .logging import get_logger
from .state import Cluster, ClusterRecord, Participant, ParticipantRecord


def _new_cluster_id() -> str:
    return uuid4().hex


class Universe:
    """Owns every participant and cluster and serializes all access to them.

    Placement of a newcomer, in order of preference:

    1. join the cluster of the nearest participant within the visibility
       radius (ties broken by lowest participant id);
    2. gravitate next to the center of the nearest existing cluster
       (ties broken by cluster age) and join it;
    3. found a new cluster.

    Every public method takes the same lock for its whole duration and only
    ever hands out frozen snapshots, so callers never observe a partially
    updated pair of collections.
    """

    def __init__(
        self,
        config: Optional[GravityChatConfig] = None,
        rng: Optional[random.Random] = None,
        universe_id: Optional[UUID] = None,
        cluster_id_factory: Optional[Callable[[], str]] = None,
    ):
        self.config = config or GravityChatConfig()
        self.universe_id = universe_id or uuid4()
        self._rng = rng or random.Random(self.config.random_seed)
        self._new_cluster_id = cluster_id_factory or _new_cluster_id

        self._users: dict[str, ParticipantRecord] = {}
        self._clusters: dict[str, ClusterRecord] = {}
        self._index = SpatialIndex()
        self._lock = threading.Lock()

        self.logger = get_logger(f"{__name__}.Universe")
        self.logger.info(
            "universe.created",
            universe_id=str(self.universe_id),
            visibility_radius=self.config.visibility_radius,
        )

    # Public operations

    def add_user(self, participant_id: str, name: str) -> Participant:
        """Place a newly connected participant and assign it to a cluster.

        The spawn radius tier is chosen from the population before the
        newcomer is counted.

        Args:
            participant_id: Connection identifier, unique while connected
            name: Display name (opaque)

        Returns:
            Snapshot with the final position and assigned cluster id
        """
        with self._lock:
            if participant_id in self._users:
                self.logger.warning("universe.duplicate_user_replaced", participant_id=participant_id)
                self._remove_locked(participant_id)

            radius = adaptive_spawn_radius(
                len(self._users),
                self.config.spawn_radius_tiers,
                self.config.max_spawn_radius,
            )
            spawn = sample_spawn_position(self._rng, radius)
            user = ParticipantRecord(participant_id=participant_id, name=name, x=spawn[0], y=spawn[1])

            nearby = self._index.query_radius(spawn, self.config.visibility_radius)

            if nearby:
                anchor = self._users[nearby[0]]
                self._track(user)
                self._assign_to_cluster(user, anchor.cluster_id)
                placement = "proximity"
            else:
                nearest = self._find_nearest_cluster(spawn)
                if nearest is not None:
                    user.move_to(
                        gravity_offset(
                            self._rng,
                            nearest.center,
                            self.config.gravity_offset_x,
                            self.config.gravity_offset_y,
                        )
                    )
                    self._track(user)
                    self._assign_to_cluster(user, nearest.cluster_id)
                    placement = "gravity"
                else:
                    self._track(user)
                    self._create_cluster_for(user)
                    placement = "new_cluster"

            self.logger.info(
                "universe.user_added",
                participant_id=participant_id,
                cluster_id=user.cluster_id,
                placement=placement,
                spawn=spawn,
                position=user.position,
                spawn_radius=radius,
            )
            return user.snapshot()

    def remove_user(self, participant_id: str) -> None:
        """Disconnect a participant. Unknown ids are a no-op."""
        with self._lock:
            if self._remove_locked(participant_id):
                self.logger.info("universe.user_removed", participant_id=participant_id)

    def get_user(self, participant_id: str) -> Optional[Participant]:
        with self._lock:
            user = self._users.get(participant_id)
            return user.snapshot() if user else None

    def get_user_cluster(self, participant_id: str) -> Optional[str]:
        with self._lock:
            user = self._users.get(participant_id)
            return user.cluster_id if user else None

    def get_cluster_members(self, cluster_id: str) -> list[Participant]:
        """Members of a cluster in join order, repairing stale references.

        Returns an empty list for unknown clusters, and for clusters that
        turn out to have no live members (those are deleted on the spot).
        """
        with self._lock:
            cluster = self._clusters.get(cluster_id)
            if cluster is None:
                return []

            if self._prune_stale_members(cluster):
                if not cluster.members:
                    self._delete_cluster(cluster)
                    return []
                self._recalculate_center(cluster)

            return [self._users[member_id].snapshot() for member_id in cluster.members]

    # Read-only helpers

    def get_cluster(self, cluster_id: str) -> Optional[Cluster]:
        with self._lock:
            cluster = self._clusters.get(cluster_id)
            return cluster.snapshot() if cluster else None

    def list_clusters(self) -> list[Cluster]:
        """Snapshots of all clusters, oldest first."""
        with self._lock:
            return [cluster.snapshot() for cluster in self._clusters.values()]

    def user_count(self) -> int:
        with self._lock:
            return len(self._users)

    def cluster_count(self) -> int:
        with self._lock:
            return len(self._clusters)

    def get_status(self) -> dict[str, Any]:
        """Summary of the universe for status endpoints and the CLI."""
        with self._lock:
            largest = max((len(c.members) for c in self._clusters.values()), default=0)
            return {
                "universe_id": str(self.universe_id),
                "user_count": len(self._users),
                "cluster_count": len(self._clusters),
                "largest_cluster": largest,
                "visibility_radius": self.config.visibility_radius,
            }

    def check_invariants(self) -> list[str]:
        """Describe every consistency violation; an empty list means consistent."""
        with self._lock:
            problems = []

            for cluster in self._clusters.values():
                if not cluster.members:
                    problems.append(f"cluster {cluster.cluster_id} has no members")
                    continue

                for member_id in cluster.members:
                    user = self._users.get(member_id)
                    if user is None:
                        problems.append(f"cluster {cluster.cluster_id} references missing participant {member_id}")
                    elif user.cluster_id != cluster.cluster_id:
                        problems.append(
                            f"participant {member_id} is a member of {cluster.cluster_id} "
                            f"but points at {user.cluster_id}"
                        )

                positions = [self._users[m].position for m in cluster.members if m in self._users]
                if positions and cluster.center != mean_position(positions):
                    problems.append(
                        f"cluster {cluster.cluster_id} center {cluster.center} "
                        f"!= mean {mean_position(positions)}"
                    )

            for user in self._users.values():
                if user.cluster_id is None:
                    continue
                cluster = self._clusters.get(user.cluster_id)
                if cluster is None:
                    problems.append(f"participant {user.participant_id} points at missing cluster {user.cluster_id}")
                elif user.participant_id not in cluster.members:
                    problems.append(
                        f"participant {user.participant_id} missing from members of {user.cluster_id}"
                    )

            if self._index.get_entity_count() != len(self._users):
                problems.append(
                    f"spatial index holds {self._index.get_entity_count()} entries for {len(self._users)} participants"
                )

            return problems

    def clear(self) -> None:
        """Drop every participant and cluster."""
        with self._lock:
            self._users.clear()
            self._clusters.clear()
            self._index.clear()
            self.logger.info("universe.cleared", universe_id=str(self.universe_id))

    # Internals (caller holds the lock)

    def _track(self, user: ParticipantRecord) -> None:
        # Members must be resolvable before any center recalculation
        self._users[user.participant_id] = user
        self._index.insert(user.participant_id, user.position)

    def _remove_locked(self, participant_id: str) -> bool:
        user = self._users.get(participant_id)
        if user is None:
            return False

        cluster = self._clusters.get(user.cluster_id) if user.cluster_id else None
        if cluster is not None:
            cluster.discard_member(participant_id)
            self._prune_stale_members(cluster)

            if not cluster.members:
                self._delete_cluster(cluster)
            else:
                self._recalculate_center(cluster)

        # Participant goes last so remaining members still resolve above
        del self._users[participant_id]
        self._index.remove(participant_id)
        return True

    def _find_nearest_cluster(self, position: Position) -> Optional[ClusterRecord]:
        if not self._clusters:
            return None

        # min() keeps the first of equal keys, i.e. the oldest cluster
        return min(
            self._clusters.values(),
            key=lambda cluster: calculate_distance(cluster.center, position),
        )

    def _create_cluster_for(self, user: ParticipantRecord) -> ClusterRecord:
        cluster = ClusterRecord(
            cluster_id=self._new_cluster_id(),
            center_x=user.x,
            center_y=user.y,
        )
        cluster.add_member(user.participant_id)
        self._clusters[cluster.cluster_id] = cluster
        user.cluster_id = cluster.cluster_id

        self.logger.info(
            "cluster.created",
            cluster_id=cluster.cluster_id,
            founder=user.participant_id,
            center=cluster.center,
        )
        return cluster

    def _assign_to_cluster(self, user: ParticipantRecord, cluster_id: str) -> None:
        cluster = self._clusters[cluster_id]
        cluster.add_member(user.participant_id)
        user.cluster_id = cluster_id
        self._prune_stale_members(cluster)
        self._recalculate_center(cluster)

    def _delete_cluster(self, cluster: ClusterRecord) -> None:
        del self._clusters[cluster.cluster_id]
        self.logger.info("cluster.deleted", cluster_id=cluster.cluster_id)

    def _prune_stale_members(self, cluster: ClusterRecord) -> int:
        stale = [member_id for member_id in cluster.members if member_id not in self._users]
        for member_id in stale:
            cluster.discard_member(member_id)

        if stale:
            self.logger.warning(
                "cluster.stale_members_dropped",
                cluster_id=cluster.cluster_id,
                stale=stale,
            )
        return len(stale)

    def _recalculate_center(self, cluster: ClusterRecord) -> None:
        center = mean_position(self._users[member_id].position for member_id in cluster.members)
        cluster.center_x, cluster.center_y = center
