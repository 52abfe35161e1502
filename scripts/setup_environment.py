"""Set up the local container environment for the Thesis Support System.

Usage:
    python -m scripts.setup_environment [--compose-file docker-compose.yml]
        [--skip-build] [--wait-attempts 30] [--wait-interval 2]

Checks that Docker is available, renders the compose file if it is missing,
builds the images, starts the database, waits until it accepts connections,
starts all services, and prints the access URLs and sample credentials.
Exits 1 if any step fails.
"""

import argparse
import logging
import sys

from thesis_support.deployment import DeploymentProfile, EnvironmentSetup, SetupError
from thesis_support.shared.telemetry.logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--compose-file", default="docker-compose.yml")
    parser.add_argument("--skip-build", action="store_true", help="Reuse existing images")
    parser.add_argument("--wait-attempts", type=int, default=30)
    parser.add_argument("--wait-interval", type=float, default=2.0)
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the setup sequence; return the process exit code."""
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    setup = EnvironmentSetup(
        profile=DeploymentProfile(),
        compose_file=args.compose_file,
        wait_attempts=args.wait_attempts,
        wait_interval_seconds=args.wait_interval,
    )
    try:
        setup.run(skip_build=args.skip_build)
    except SetupError as e:
        print(f"Setup failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
