#!/usr/bin/env python3
"""Create a demo SQLite database with a ``documents(id, text)`` table."""

import argparse
import random
import sqlite3
from contextlib import closing

WORDS = (
    "parallel worker queue pool result score token model fetch write "
    "lock thread core batch item record log data source sink"
).split()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo documents database.")
    parser.add_argument("database", help="Path to the SQLite file to create")
    parser.add_argument("--count", type=int, default=1000, help="Number of documents")
    parser.add_argument(
        "--missing-every",
        type=int,
        default=0,
        help="Skip every Nth id so some lookups come back empty",
    )
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    rows = [
        (i, " ".join(rng.choices(WORDS, k=rng.randint(3, 30))))
        for i in range(args.count)
        if not (args.missing_every and i % args.missing_every == 0)
    ]

    with closing(sqlite3.connect(args.database)) as conn:
        with conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS documents (id INTEGER PRIMARY KEY, text TEXT)"
            )
            conn.executemany("INSERT OR REPLACE INTO documents VALUES (?, ?)", rows)

    print(f"Wrote {len(rows)} documents to {args.database}.")


if __name__ == "__main__":
    main()
