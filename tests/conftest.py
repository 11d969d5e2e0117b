"""Pytest configuration and shared fixtures."""

import itertools
import random

import pytest

from core.config import GravityChatConfig
from core.universe import Universe


class ScriptedRandom(random.Random):
    """Random source whose randint() replays queued values.

    Each queued value must fall inside the requested range, which pins down
    both the value and the order in which the universe asks for them.
    """

    def __init__(self, values=()):
        super().__init__(0)
        self.queue = list(values)
        self.requests: list[tuple[int, int]] = []

    def push(self, *values: int) -> None:
        self.queue.extend(values)

    def randint(self, a, b):
        self.requests.append((a, b))
        if not self.queue:
            raise AssertionError(f"no scripted value left for randint({a}, {b})")
        value = self.queue.pop(0)
        if not a <= value <= b:
            raise AssertionError(f"scripted value {value} outside randint({a}, {b})")
        return value


def sequential_cluster_ids(prefix: str = "cluster"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


@pytest.fixture
def config():
    """Default clustering configuration."""
    return GravityChatConfig()


@pytest.fixture
def scripted_rng():
    return ScriptedRandom()


@pytest.fixture
def universe(config, scripted_rng):
    """Universe driven by a scripted random source and predictable cluster ids."""
    return Universe(
        config=config,
        rng=scripted_rng,
        cluster_id_factory=sequential_cluster_ids(),
    )


@pytest.fixture
def seeded_universe(config):
    """Universe with a seeded random source for larger randomized scenarios."""
    return Universe(config=config, rng=random.Random(1234))
