import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="portal-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{(_TEST_DIR / 'portal.db').as_posix()}"
os.environ["DRIVE_MODE"] = "local"
os.environ["GAMES_JSON"] = ""
os.environ["GAMES_FILE"] = ""
os.environ["GOOGLE_SERVICE_ACCOUNT_PATH"] = str(_TEST_DIR / "missing-service-account.json")
os.environ["RATE_LIMIT_MAX"] = "0"

import pytest  # noqa: E402

from portal.core.cache import cache_client  # noqa: E402
from portal.db import SessionLocal, init_db  # noqa: E402
from portal.models import GameMapping  # noqa: E402
from portal.services.catalog import reset_catalog_cache  # noqa: E402


@pytest.fixture(autouse=True)
def reset_shared_state(monkeypatch, tmp_path):
    # catalog files are looked up relative to the working directory
    monkeypatch.chdir(tmp_path)
    cache_client.clear()
    reset_catalog_cache()
    yield
    cache_client.clear()
    reset_catalog_cache()


@pytest.fixture
def db_session():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.query(GameMapping).delete()
        session.commit()
        session.close()
