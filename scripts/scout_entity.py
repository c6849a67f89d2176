#!/usr/bin/env python3
"""
Scout a website from the command line.

Prints the ScoutOutcome as indented JSON (camelCase keys).

Usage:
    python scripts/scout_entity.py neonvelvet.com
    python scripts/scout_entity.py https://neonvelvet.com --tag Catering --tag AV
    python scripts/scout_entity.py neonvelvet.com --debug

Requires: OPENAI_API_KEY or ANTHROPIC_API_KEY in the environment or .env
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from signal_scout.core.config import get_settings
from signal_scout.scout.pipeline import extract_entity
from signal_scout.scout.types import AvatarFallbackStrategy


async def run(args: argparse.Namespace) -> int:
    outcome = await extract_entity(
        args.url,
        existing_tags=args.tag,
        debug=args.debug or None,
        avatar_strategy=AvatarFallbackStrategy(args.avatar_strategy),
    )
    print(json.dumps(outcome.model_dump(by_alias=True), indent=2))
    return 0 if outcome.success else 1


def main():
    parser = argparse.ArgumentParser(
        description="Extract an organization profile from a website"
    )
    parser.add_argument("url", help="Website URL (https:// assumed when omitted)")
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Existing tag to reconcile against (repeatable)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Attach the diagnostic payload (team page, blocks, avatars)",
    )
    parser.add_argument(
        "--avatar-strategy",
        choices=[s.value for s in AvatarFallbackStrategy],
        default=AvatarFallbackStrategy.NONE.value,
        help="Body-fallback avatar strategy, for experiments only (default: none)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
