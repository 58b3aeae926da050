#!/usr/bin/env python3
"""
Script to check the configured catalog storage.
Prints every tag and how many videos carry it.

Usage:
    python scripts/list_tags.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.main import create_repository, db


async def main() -> None:
    repository = create_repository()

    tags = await repository.get_all_tags()
    print(f"Total tags: {len(tags)}\n")

    print("=" * 50)
    for tag in tags:
        # Large limit: count every match, order does not matter here
        result = await repository.get_videos_by_tag(tag, 10_000)
        print(f"{tag}: {len(result)} video(s)")
    print("=" * 50)

    await db.close()


if __name__ == "__main__":
    asyncio.run(main())
