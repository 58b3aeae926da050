#!/usr/bin/env python3
"""
Script to initialize the local video database.

Usage:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.config import settings
from src.db.sqlite import Database


async def main() -> None:
    """Create the videos table."""
    print("Initializing database...")
    print("-" * 50)

    db = Database(settings.db_url)
    print(f"Creating tables in {settings.db_url}...")
    await db.init()
    print("✅ SQLite initialized")

    print("-" * 50)
    await db.close()


if __name__ == "__main__":
    asyncio.run(main())
