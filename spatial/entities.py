# spatial/entities.py

"""Geometry utilities for the universe: positions, distance and placement sampling."""

import math
import random
from typing import Iterable, Sequence

# Type alias for position
Position = tuple[int, int]

# (population upper bound, spawn radius) pairs, checked in order
DEFAULT_SPAWN_TIERS: tuple[tuple[int, int], ...] = ((5, 200), (15, 500), (50, 1000))
DEFAULT_MAX_SPAWN_RADIUS = 2000

DEFAULT_GRAVITY_OFFSET_X: tuple[int, int] = (-120, -60)
DEFAULT_GRAVITY_OFFSET_Y: tuple[int, int] = (60, 120)


def calculate_distance(pos1: Position, pos2: Position) -> int:
    """Euclidean distance between two integer points, truncated toward zero.

    The square root is taken on the exact integer squared distance, so the
    result is reproducible for any coordinates: (0,0)-(3,4) is 5 and
    (0,0)-(1,1) is 1.

    Args:
        pos1: First position (x, y)
        pos2: Second position (x, y)

    Returns:
        Truncated distance
    """
    dx = pos2[0] - pos1[0]
    dy = pos2[1] - pos1[1]
    return math.isqrt(dx * dx + dy * dy)


def adaptive_spawn_radius(
    population: int,
    tiers: Iterable[Sequence[int]] = DEFAULT_SPAWN_TIERS,
    max_radius: int = DEFAULT_MAX_SPAWN_RADIUS,
) -> int:
    """Spawn radius for a universe currently holding ``population`` participants.

    Args:
        population: Number of participants already present
        tiers: Ordered (upper bound, radius) pairs; the first bound that
            ``population`` is strictly below wins
        max_radius: Radius used when no tier matches

    Returns:
        Half-width of the square spawn window
    """
    for bound, radius in tiers:
        if population < bound:
            return radius
    return max_radius


def sample_spawn_position(rng: random.Random, radius: int) -> Position:
    """Sample a point uniformly in [-radius, radius] on both axes (inclusive)."""
    x = rng.randint(-radius, radius)
    y = rng.randint(-radius, radius)
    return (x, y)


def gravity_offset(
    rng: random.Random,
    center: Position,
    x_window: Sequence[int] = DEFAULT_GRAVITY_OFFSET_X,
    y_window: Sequence[int] = DEFAULT_GRAVITY_OFFSET_Y,
) -> Position:
    """Pick the position a gravitating newcomer lands on next to a cluster center.

    Args:
        rng: Randomness source
        center: Cluster center (x, y)
        x_window: Inclusive (low, high) offset applied to center x
        y_window: Inclusive (low, high) offset applied to center y

    Returns:
        New (x, y) position
    """
    offset_x = rng.randint(x_window[0], x_window[1])
    offset_y = rng.randint(y_window[0], y_window[1])
    return (center[0] + offset_x, center[1] + offset_y)


def _truncated_div(total: int, count: int) -> int:
    quotient = abs(total) // count
    return -quotient if total < 0 else quotient


def mean_position(positions: Iterable[Position]) -> Position:
    """Componentwise mean of positions, each axis truncated toward zero.

    Raises:
        ValueError: If ``positions`` is empty
    """
    count = 0
    total_x = 0
    total_y = 0
    for x, y in positions:
        total_x += x
        total_y += y
        count += 1

    if count == 0:
        raise ValueError("Cannot average an empty set of positions")

    return (_truncated_div(total_x, count), _truncated_div(total_y, count))
