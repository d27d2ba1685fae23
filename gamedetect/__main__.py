"""
gamedetect command line.

Usage:
    python -m gamedetect scan [--force] [--platform NAME] [--timeout SECONDS] [--json]
    python -m gamedetect list [--json]
    python -m gamedetect clear
"""

import argparse
import asyncio
import json
import logging
import sys

from .engine import build_engine
from .stores.base import UnknownPlatformError

logger = logging.getLogger("gamedetect")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gamedetect", description="Detect installed games across launchers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan platforms for installed games")
    scan.add_argument("--force", action="store_true", help="Ignore the cached result")
    scan.add_argument("--platform", help="Rescan only this platform (e.g. Steam, Epic, Battle.net)")
    scan.add_argument("--timeout", type=float, default=None, help="Per-detector timeout in seconds")
    scan.add_argument("--json", action="store_true", help="Print the report as JSON")

    show = sub.add_parser("list", help="Show cached games without scanning")
    show.add_argument("--json", action="store_true", help="Print games as JSON")

    sub.add_parser("clear", help="Delete the games cache")
    return parser


def _print_games(games):
    if not games:
        print("No games found, click scan")
        return
    for game in sorted(games, key=lambda g: (g.platform, g.name.lower())):
        size = f"{game.size_gb} GB" if game.size_bytes else "?"
        print(f"{game.platform:<10} {game.name:<45} {size:>7}  {game.install_path}")


async def run(args) -> int:
    engine = build_engine()
    service = engine.detection_service
    try:
        if args.command == "scan":
            if args.platform:
                try:
                    report = await service.scan_platform(args.platform, timeout=args.timeout)
                except UnknownPlatformError as e:
                    print(str(e), file=sys.stderr)
                    return 2
            else:
                report = await service.scan_all_platforms(force_refresh=args.force, timeout=args.timeout)
            await engine.summary_sink.flush()
            if args.json:
                print(json.dumps(report.to_dict(), indent=2))
            else:
                _print_games(report.games)
                print(report.summary())
            return 1 if report.all_failed else 0

        if args.command == "list":
            games = service.get_cached_games()
            if args.json:
                print(json.dumps([game.to_dict() for game in games], indent=2))
            else:
                _print_games(games)
            return 0

        if args.command == "clear":
            await service.clear_cache()
            print("Cache cleared")
            return 0
    finally:
        await engine.close()
    return 2


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%H:%M:%S',
        stream=sys.stderr,
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
