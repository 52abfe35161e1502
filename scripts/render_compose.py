"""Write the docker-compose file with per-service memory limits and PostgreSQL tuning.

Usage:
    python -m scripts.render_compose [--output docker-compose.yml]
        [--memory-limit 512M] [--memory-reservation 256M]
"""

import argparse
import sys

from thesis_support.deployment import (
    DeploymentProfile,
    ServiceResources,
    dump_compose,
    render_compose,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--output", "-o", default="docker-compose.yml", help="'-' for stdout")
    parser.add_argument("--memory-limit", default="512M")
    parser.add_argument("--memory-reservation", default="256M")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        resources = ServiceResources(
            memory_limit=args.memory_limit,
            memory_reservation=args.memory_reservation,
        )
        profile = DeploymentProfile(
            services={name: resources for name in ("db", "redis", "backend", "frontend")}
        )
        document = render_compose(profile)
    except ValueError as e:
        print(f"Invalid resources: {e}", file=sys.stderr)
        return 1
    text = dump_compose(document)
    if args.output == "-":
        sys.stdout.write(text)
    else:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Wrote {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
