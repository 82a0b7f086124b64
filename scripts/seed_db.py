from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.class_attendance.class_attendance.database.bootstrap import seed_demo_class


def main() -> None:
    parser = argparse.ArgumentParser(description="Insert a demo class and roster")
    parser.add_argument("--class-id", type=int, default=1)
    parser.add_argument("--start", default="09:00:00", help="class start time, HH:MM:SS")
    parser.add_argument("students", nargs="*", default=["S001", "S002", "S003"])
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    seed_demo_class(db_config, class_id=args.class_id, start_time=args.start, student_ids=args.students)

    print(
        "OK: Seeded class "
        f"{args.class_id} with {len(args.students)} students -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
