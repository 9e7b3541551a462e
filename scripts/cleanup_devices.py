"""Purge devices that have been inactive longer than the retention period.

Usage: ``python scripts/cleanup_devices.py [--days N]``
"""
from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_portal.hr_portal.common.logging import configure_logging
from src.hr_portal.hr_portal.container import build_container


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--days", type=int, default=None, help="override INACTIVE_DEVICE_RETENTION_DAYS")
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        upload_folder=getattr(settings, "UPLOAD_FOLDER", "uploads"),
        retention_days=int(getattr(settings, "INACTIVE_DEVICE_RETENTION_DAYS", 30)),
    )

    removed = container.device_service.cleanup_inactive(args.days)
    print(f"OK: Removed {removed} inactive device(s)")


if __name__ == "__main__":
    main()
