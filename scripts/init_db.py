#!/usr/bin/env python3
"""
Database initialization script
Creates all tables, optionally wiping the schema first or loading the demo data afterwards

Usage:
    python init_db.py            # create missing tables
    python init_db.py --reset    # drop every table, then recreate (development only)
    python init_db.py --seed     # create tables, then run seed_demo_data
"""
import argparse
import os
import sys
from pathlib import Path

scripts_dir = Path(__file__).resolve().parent
backend_dir = scripts_dir.parent / "src" / "backend"
sys.path.insert(0, str(scripts_dir))
sys.path.insert(0, str(backend_dir))

# Relative SQLite paths resolve against src/backend
os.chdir(str(backend_dir))
Path("data").mkdir(exist_ok=True)

from learnplatform.models import init_db, reset_db


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the LearnPlatform database schema")
    parser.add_argument("--reset", action="store_true", help="drop all tables before creating them")
    parser.add_argument("--seed", action="store_true", help="load demo users, a course and a lab afterwards")
    args = parser.parse_args(argv)

    if args.reset:
        print("🗑️  Resetting database...")
        reset_db()
    else:
        print("🚀 Initializing database...")
        init_db()

    if args.seed:
        import seed_demo_data
        seed_demo_data.main()

    print("Done!")


if __name__ == "__main__":
    main()
