import os

# Configure before anything imports metricdaily.core.config
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["STORAGE_BACKEND"] = "sql"
os.environ["LIVE_REFRESH_SECONDS"] = "0"

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from metricdaily.db import Base, make_engine  # noqa: E402
from metricdaily.models.audit_log import AuditLog  # noqa: E402,F401
from metricdaily.models.uph_target import UPHTarget  # noqa: E402,F401
from metricdaily.models.user_settings import UserSettings  # noqa: E402,F401
from metricdaily.models.work_log import WorkLog  # noqa: E402,F401
from metricdaily.storage.local import JsonFileStore  # noqa: E402
from metricdaily.storage.sql import SqlStore  # noqa: E402


@pytest.fixture
def db_session():
    engine = make_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def sql_store(db_session):
    return SqlStore(db_session)


@pytest.fixture
def json_store(tmp_path):
    return JsonFileStore(tmp_path / "metricdaily.json")


@pytest.fixture(params=["json", "sql"])
def store(request, tmp_path):
    if request.param == "json":
        return request.getfixturevalue("json_store")
    return request.getfixturevalue("sql_store")


@pytest.fixture
def client(tmp_path, monkeypatch):
    from fastapi.testclient import TestClient  # noqa: WPS433
    from metricdaily.core.config import settings
    from metricdaily.db import engine
    from metricdaily.main import app  # noqa: WPS433
    from metricdaily.services.live import LiveProgressTracker

    # Fresh tables and tracker state per test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.state.live_tracker = LiveProgressTracker()
    monkeypatch.setattr(settings, "local_store_path", str(tmp_path / "local.json"))
    return TestClient(app)
