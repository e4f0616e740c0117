import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from feedgate.context import for_identity
from feedgate.db import DB, sqlite_connect_args
from feedgate.models import Base
from feedgate.services import feed


@pytest.fixture
def server_db(tmp_path):
    db_path = tmp_path / "feedgate.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args=sqlite_connect_args(),
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    DB.engine = engine
    DB.SessionLocal = SessionLocal
    try:
        yield SessionLocal
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture
def db_session(server_db):
    session = server_db()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_profile(server_db):
    def _make(user_id: str, username: str | None = None) -> dict:
        result = feed.create_profile(username=username or user_id, context=for_identity(user_id))
        assert result["status"] == "created", result
        return result["profile"]

    return _make


@pytest.fixture
def make_post(server_db):
    def _make(user_id: str, caption: str = "hello", is_reel: bool = False) -> dict:
        result = feed.create_post(
            image_url=f"https://cdn.example.com/posts/{user_id}/photo.jpg",
            caption=caption,
            is_reel=is_reel,
            context=for_identity(user_id),
        )
        assert result["status"] == "created", result
        return result["post"]

    return _make
