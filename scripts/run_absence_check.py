"""Run one forced absence check for every enabled school and exit.

Usage: python scripts/run_absence_check.py
"""
from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.absence_notifier.absence_notifier.container import build_container
from src.absence_notifier.absence_notifier.core.logging import configure_logging


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), json=bool(getattr(settings, "LOG_JSON", False)))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=settings)
    result = container.absence_scheduler.run_now()
    print(json.dumps(result, indent=2))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
