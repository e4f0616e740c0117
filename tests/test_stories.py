import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DB_BACKEND", "sqlite")

import feedgate.services.stories as stories
from feedgate.context import for_identity
from feedgate.models import utcnow
from feedgate.services import feed


def test_story_defaults_to_configured_ttl(server_db, make_profile):
    make_profile("u1")
    before = utcnow()
    result = feed.create_story("https://cdn.example.com/s.jpg", context=for_identity("u1"))
    assert result["status"] == "created"
    listed = feed.list_stories(user_id="u1")
    assert listed["count"] == 1
    assert listed["stories"][0]["expired"] is False
    assert listed["stories"][0]["expires_at"] > (before + timedelta(hours=23)).isoformat()


def test_expired_stories_are_hidden_by_default(server_db, make_profile, monkeypatch):
    make_profile("u1")
    feed.create_story(
        "https://cdn.example.com/s.jpg",
        expires_at=utcnow() + timedelta(minutes=5),
        context=for_identity("u1"),
    )

    later = utcnow() + timedelta(hours=1)
    monkeypatch.setattr(stories, "utcnow", lambda: later)

    assert feed.list_stories(user_id="u1")["count"] == 0
    archived = feed.list_stories(user_id="u1", include_expired=True)
    assert archived["count"] == 1
    assert archived["stories"][0]["expired"] is True


def test_story_expiry_must_be_in_the_future(server_db, make_profile):
    make_profile("u1")
    result = feed.create_story(
        "https://cdn.example.com/s.jpg",
        expires_at=utcnow() - timedelta(minutes=1),
        context=for_identity("u1"),
    )
    assert result["status"] == "error"
    assert result["field"] == "expires_at"


def test_only_owner_deletes_story(server_db, make_profile):
    make_profile("u1")
    make_profile("u2")
    story = feed.create_story("https://cdn.example.com/s.jpg", context=for_identity("u1"))["story"]

    assert feed.delete_story(story["id"], context=for_identity("u2"))["status"] == "denied"
    assert feed.delete_story(story["id"], context=for_identity("u1"))["status"] == "deleted"
    assert feed.delete_story(story["id"], context=for_identity("u1"))["status"] == "not_found"


def test_offset_expiry_is_stored_as_utc(server_db, make_profile):
    make_profile("u1")
    eastern = timezone(timedelta(hours=-5))
    expires_at = datetime.now(eastern) + timedelta(hours=1)
    created = feed.create_story(
        "https://cdn.example.com/s.jpg",
        expires_at=expires_at,
        context=for_identity("u1"),
    )
    assert created["status"] == "created"
    assert created["story"]["expires_at"] == expires_at.astimezone(timezone.utc).isoformat()

    listed = feed.list_stories(user_id="u1")
    assert listed["count"] == 1
    assert listed["stories"][0]["expired"] is False
    assert datetime.fromisoformat(listed["stories"][0]["expires_at"]) > utcnow()
