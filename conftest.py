import itertools
import os
import tempfile
from unittest.mock import AsyncMock

# Settings are read at import time, so point them at a throwaway database
# before anything from ``app`` is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="badminton-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["MEDIA_DIR"] = os.path.join(_TMP_DIR, "media")
os.environ["SUPABASE_URL"] = ""
os.environ["ADMIN_PASSWORD"] = "test-admin-password"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["DEBUG"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, async_session, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.services.registration import seed_team_code_sequences  # noqa: E402
from app.services.storage import SupabaseStorage, get_storage  # noqa: E402

ADMIN_PASSWORD = "test-admin-password"


async def _reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as db:
        await seed_team_code_sequences(db)


# ------------------------
# Fixtures
# ------------------------
@pytest.fixture
def storage_mock():
    storage = AsyncMock(spec=SupabaseStorage)
    counter = itertools.count(1)

    def _upload(data, content_type, prefix, filename):
        return f"https://storage.test/photos/{prefix}_{next(counter)}.jpg"

    storage.upload.side_effect = _upload
    storage.remove.return_value = None
    return storage


@pytest.fixture
def client(storage_mock):
    app.dependency_overrides[get_storage] = lambda: storage_mock
    with TestClient(app) as test_client:
        test_client.portal.call(_reset_database)
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def register_team(client):
    """Post a registration form; photos are attached unless disabled."""

    def _register(
        team_name="Shuttle Kings",
        level="E",
        p1_type="student",
        p2_type="staff",
        p1_photo=True,
        p2_photo=True,
    ):
        data = {
            "team_name": team_name,
            "level": level,
            "p1_name": "Somchai Jaidee",
            "p1_id": "B6512345",
            "p1_type": p1_type,
            "p2_name": "Suda Rakdee",
            "p2_id": "ST0042",
            "p2_type": p2_type,
            "eval_method": "video",
            "eval_link": "https://youtu.be/example",
        }
        files = {}
        if p1_photo:
            files["p1_photo"] = ("p1.jpg", b"\xff\xd8\xff\xe0player-one", "image/jpeg")
        if p2_photo:
            files["p2_photo"] = ("p2.png", b"\x89PNGplayer-two", "image/png")
        return client.post("/api/register", data=data, files=files or None)

    return _register
