import pytest
from fastapi.testclient import TestClient

from pagewiki.config import Settings
from pagewiki.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        db_path=str(tmp_path / "db" / "wiki.db"),
        queue="test.wikidb.queue",
        max_pool_size=4,
        acquire_timeout_s=2,
        reply_timeout_s=5,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
