import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "testing"

import pytest
from fastapi.testclient import TestClient

from exam_engine.core import cache as cache_mod
from exam_engine.core.database import SessionLocal, engine
from exam_engine.models.orm import Base
from factories import DictRedis


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    cache_mod.set_presentation_cache(None)
    yield
    cache_mod.set_presentation_cache(None)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def fake_redis():
    r = DictRedis()
    cache_mod.set_presentation_cache(cache_mod.PresentationCache(client=r, ttl=60, enabled=True))
    return r


@pytest.fixture
def client():
    from exam_engine.main import app

    with TestClient(app) as c:
        yield c
