from __future__ import annotations

import argparse

from sqlalchemy import select

from app.core.config import settings
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.models import Elf

ELVES: list[dict[str, str]] = [
    {
        "name": "Jingle",
        "job": "Head Toy Tester",
        "personality": "Bouncy and giggly, tries every toy twice and loves silly jokes",
        "emoji": "🧸",
    },
    {
        "name": "Sprinkle",
        "job": "Cookie Baker in the Gingerbread Kitchen",
        "personality": "Warm and cozy, always smells like cinnamon and asks about favorite treats",
        "emoji": "🍪",
    },
    {
        "name": "Twinkle",
        "job": "Reindeer Trainer",
        "personality": "Adventurous and brave, tells stories about Rudolph's practice flights",
        "emoji": "🦌",
    },
    {
        "name": "Snowflake",
        "job": "Keeper of the Nice List",
        "personality": "Gentle and wise, notices every kind thing a child does",
        "emoji": "❄️",
    },
    {
        "name": "Pip",
        "job": "Wrapping Paper Designer",
        "personality": "Creative and cheerful, loves colors, glitter and big shiny bows",
        "emoji": "🎁",
    },
]


def run_seed(*, create_tables: bool = False) -> tuple[int, int]:
    engine = build_engine(settings)
    if create_tables:
        Base.metadata.create_all(engine)
    session_factory = build_session_factory(engine)

    inserted = 0
    updated = 0
    with session_factory() as db:
        for row in ELVES:
            elf = db.scalar(select(Elf).where(Elf.name == row["name"]))
            if elf is None:
                db.add(Elf(**row))
                inserted += 1
            else:
                elf.job = row["job"]
                elf.personality = row["personality"]
                elf.emoji = row["emoji"]
                updated += 1
        db.commit()
    return inserted, updated


def main() -> None:
    parser = argparse.ArgumentParser(description="Load the elf catalog.")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="create missing tables first (local development databases only)",
    )
    args = parser.parse_args()

    inserted, updated = run_seed(create_tables=args.create_tables)
    print("=== ELVES SEED RESULT ===")
    print(f"inserted: {inserted}")
    print(f"updated: {updated}")


if __name__ == "__main__":
    main()
