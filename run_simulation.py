#!/usr/bin/env python3
"""Simple CLI runner for exercising the GravityChat universe without a server."""

import argparse
import random
import sys

from core.config import GravityChatConfig
from core.logging import configure_logging, get_logger
from core.names import generate_display_name
from core.universe import Universe

logger = get_logger(__name__)


def print_status(universe: Universe) -> None:
    for key, value in universe.get_status().items():
        print(f"  {key}: {value}")


def print_clusters(universe: Universe) -> None:
    clusters = universe.list_clusters()
    if not clusters:
        print("  (no clusters)")
        return

    for cluster in clusters:
        print(f"  cluster {cluster.cluster_id} center={cluster.center} size={cluster.size}")
        for member in universe.get_cluster_members(cluster.cluster_id):
            print(f"    - {member.participant_id} {member.name} @ {member.position}")


def run_demo(users: int, churn: float, seed: int | None, log_level: str) -> int:
    """Populate a universe, disconnect a share of it, and report the result."""
    configure_logging(log_level, json_logs=False)

    rng = random.Random(seed)
    universe = Universe(config=GravityChatConfig(random_seed=seed), rng=rng)

    connected = []
    for i in range(users):
        participant_id = f"user-{i:04d}"
        universe.add_user(participant_id, generate_display_name(rng))
        connected.append(participant_id)

    departures = rng.sample(connected, int(len(connected) * churn))
    for participant_id in departures:
        universe.remove_user(participant_id)

    print("\nUniverse Status:")
    print_status(universe)
    print("\nClusters:")
    print_clusters(universe)

    problems = universe.check_invariants()
    if problems:
        for problem in problems:
            logger.error("invariant.violated", problem=problem)
        return 1

    logger.info("Demo complete!", users=users, departures=len(departures))
    return 0


def interactive_mode(seed: int | None, log_level: str) -> int:
    """Run an interactive REPL against a universe."""
    configure_logging(log_level, json_logs=False)

    rng = random.Random(seed)
    universe = Universe(config=GravityChatConfig(random_seed=seed), rng=rng)
    next_id = 0

    print("\n" + "=" * 60)
    print("GravityChat Interactive Universe")
    print("=" * 60)
    print("\nCommands:")
    print("  add [name]   - Connect a participant")
    print("  remove <id>  - Disconnect a participant")
    print("  user <id>    - Show a participant")
    print("  clusters     - List clusters and members")
    print("  status       - Show universe status")
    print("  quit         - Exit")
    print()

    while True:
        try:
            cmd = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not cmd:
            continue

        parts = cmd.split(maxsplit=1)
        command = parts[0].lower()

        if command == "quit":
            break
        elif command == "add":
            participant_id = f"user-{next_id:04d}"
            next_id += 1
            name = parts[1] if len(parts) > 1 else generate_display_name(rng)
            user = universe.add_user(participant_id, name)
            print(f"{user.participant_id} ({user.name}) @ {user.position} -> {user.cluster_id}")
        elif command == "remove":
            if len(parts) < 2:
                print("Usage: remove <id>")
            else:
                universe.remove_user(parts[1])
                print(f"Removed {parts[1]}")
        elif command == "user":
            if len(parts) < 2:
                print("Usage: user <id>")
            else:
                user = universe.get_user(parts[1])
                print(user.to_dict() if user else "Unknown participant")
        elif command == "clusters":
            print_clusters(universe)
        elif command == "status":
            print_status(universe)
        else:
            print(f"Unknown command: {command}")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Exercise the GravityChat clustering universe")
    parser.add_argument("--interactive", action="store_true", help="Start a REPL")
    parser.add_argument("--users", type=int, default=25, help="Participants to connect in the demo")
    parser.add_argument("--churn", type=float, default=0.2, help="Share of participants to disconnect")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs")
    parser.add_argument("--log-level", default="WARNING", help="Log level")
    args = parser.parse_args(argv)

    if not 0.0 <= args.churn <= 1.0:
        parser.error("--churn must be between 0 and 1")

    if args.interactive:
        return interactive_mode(args.seed, args.log_level)
    return run_demo(args.users, args.churn, args.seed, args.log_level)


if __name__ == "__main__":
    sys.exit(main())
