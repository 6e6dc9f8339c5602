from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable
from zoneinfo import ZoneInfo

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient  # noqa: E402

from skyevents.config import Settings  # noqa: E402


@pytest.fixture(scope="session")
def warsaw() -> ZoneInfo:
    return ZoneInfo("Europe/Warsaw")


@pytest.fixture(scope="session")
def api_client() -> Iterable[TestClient]:
    from skyevents_api import create_app

    app = create_app(Settings(default_tz="Europe/Warsaw", max_days=7))
    with TestClient(app) as client:
        yield client
