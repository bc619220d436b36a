"""
Command-line entry point: build one audio briefing.

Usage:
  fetchnews --topic business --topic world --length short
  fetchnews --locate --lat 30.27 --lon -97.74 --topic local
  fetchnews --clear-location
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from fetchnews.config import configure_logging, get_settings
from fetchnews.errors import GenerationError
from fetchnews.location.providers import StaticGeolocator
from fetchnews.session import BriefingSession
from fetchnews.topics import LengthPreference

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fetchnews",
        description="Turn selected news topics into a single audio briefing",
    )
    parser.add_argument(
        "--topic",
        "-t",
        action="append",
        default=[],
        help="Topic key to include (repeatable), e.g. business, world, local",
    )
    parser.add_argument(
        "--length",
        "-l",
        choices=[p.value for p in LengthPreference],
        default=LengthPreference.SHORT.value,
    )
    parser.add_argument("--locate", action="store_true", help="Resolve location before running")
    parser.add_argument("--lat", type=float, help="Device latitude for --locate")
    parser.add_argument("--lon", type=float, help="Device longitude for --locate")
    parser.add_argument("--clear-location", action="store_true", help="Forget the cached location")
    parser.add_argument("--play", action="store_true", help="Hand the audio to the player")
    return parser


def _print_result(session: BriefingSession) -> None:
    result = session.result
    if result is None:
        return
    print(f"# {result.combined.title}\n")
    print(result.combined.body_text)
    if result.combined.audio_ref:
        print(f"\nAudio: {result.combined.audio_ref}")
    for item in result.displayable_items():
        source = f" ({item.source_name})" if item.source_name else ""
        print(f"\n- {item.title}{source}")
        if item.external_link:
            print(f"  {item.external_link}")


async def _main_async(args: argparse.Namespace) -> int:
    settings = get_settings()
    geolocator = None
    if args.lat is not None and args.lon is not None:
        geolocator = StaticGeolocator(args.lat, args.lon)

    async with BriefingSession.from_settings(settings, geolocator=geolocator) as session:
        if args.clear_location:
            session.clear_location()
            print("Location cleared.")

        if args.locate:
            granted = await session.request_location()
            if session.location is not None:
                print(f"Location: {session.location.label} (source: {session.location.source.value})")
            else:
                print(f"Location unavailable: {session.location_state.error}")
            logger.debug("Location permission", extra={"granted": granted})

        if not args.topic:
            return 0

        await session.check_health()
        session.pipeline.add_listener(
            lambda phase: print(phase.label, file=sys.stderr)
        )
        for key in args.topic:
            session.toggle_topic(key)
        session.set_length(args.length)

        try:
            await session.run()
        except GenerationError as e:
            print(f"Failed to build briefing: {e}", file=sys.stderr)
            return 1

        _print_result(session)
        if args.play:
            session.play()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    return asyncio.run(_main_async(args))


if __name__ == "__main__":
    sys.exit(main())
