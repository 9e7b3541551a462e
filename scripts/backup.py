"""Dump the portal database with ``mysqldump`` (MySQL client tools must be installed).

Usage: ``python scripts/backup.py [--out DIR] [--skip-devices]``
"""
from __future__ import annotations

import argparse
import importlib
import os
import subprocess
import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_portal.hr_portal.database.connection import DBConfig


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--out", type=Path, default=REPO_ROOT / "backups", help="target directory")
    parser.add_argument("--skip-devices", action="store_true", help="leave the user_devices table out of the dump")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db = DBConfig.from_dict(dict(settings.DB_CONFIG))

    args.out.mkdir(parents=True, exist_ok=True)
    out_file = args.out / f"{db.database}_{datetime.now():%Y%m%d_%H%M%S}.sql"

    cmd = [
        "mysqldump",
        f"--host={db.host}",
        f"--port={db.port}",
        f"--user={db.user}",
        "--single-transaction",
        "--routines",
    ]
    if args.skip_devices:
        cmd.append(f"--ignore-table={db.database}.user_devices")
    cmd.append(db.database)

    # password through the environment so it does not show up in the process list
    env = {**os.environ, "MYSQL_PWD": db.password}
    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True, env=env)
    except FileNotFoundError:
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools first.")
    except subprocess.CalledProcessError as e:
        out_file.unlink(missing_ok=True)
        raise SystemExit(f"mysqldump failed: {e.stderr.decode(errors='replace').strip()}")

    print(f"OK: Backup created -> {out_file} ({db.describe()})")


if __name__ == "__main__":
    main()
