import os

os.environ.setdefault("DB_BACKEND", "sqlite")

from feedgate.audit_constants import EVENT_ACCOUNT_PURGED
from feedgate.context import for_identity, system_context
from feedgate.models import Comment, Follow, Like, Post, Profile
from feedgate.services import feed
from feedgate.services.counters import check_no_orphaned_edges, check_post_counters, check_profile_counters


def test_profile_is_created_once_per_identity(server_db):
    created = feed.create_profile(username="ada", full_name="Ada", context=for_identity("u1"))
    assert created["status"] == "created"
    assert created["profile"]["id"] == "u1"
    assert created["profile"]["followers_count"] == 0

    again = feed.create_profile(username="ada2", context=for_identity("u1"))
    assert again["status"] == "conflict"

    taken = feed.create_profile(username="ada", context=for_identity("u2"))
    assert taken["status"] == "conflict"

    anonymous = feed.create_profile(username="ghost", context=for_identity(None))
    assert anonymous["status"] == "denied"


def test_username_format_is_validated(server_db):
    result = feed.create_profile(username="bad name!", context=for_identity("u1"))
    assert result["status"] == "error"
    assert result["field"] == "username"


def test_update_profile(server_db, make_profile):
    make_profile("u1", "first")
    make_profile("u2", "second")

    updated = feed.update_profile(
        bio="hello",
        website="https://example.com",
        context=for_identity("u1"),
    )
    assert updated["status"] == "updated"
    assert updated["profile"]["bio"] == "hello"
    assert updated["profile"]["username"] == "first"

    cleared = feed.update_profile(website="", context=for_identity("u1"))
    assert cleared["profile"]["website"] is None

    assert feed.update_profile(username="second", context=for_identity("u1"))["status"] == "conflict"
    assert feed.update_profile(bio="x", profile_id="u2", context=for_identity("u1"))["status"] == "denied"
    assert feed.update_profile(bio="x", context=for_identity(None))["status"] == "denied"


def test_get_profile_by_username(server_db, make_profile):
    make_profile("u1", "lookup")
    assert feed.get_profile(username="lookup")["profile"]["id"] == "u1"
    assert feed.get_profile(username="missing")["status"] == "not_found"
    assert feed.get_profile()["status"] == "error"


def test_purge_requires_system_context(server_db, make_profile):
    make_profile("u1")
    result = feed.purge_account("u1", context=for_identity("u1"))
    assert result["status"] == "denied"
    assert feed.get_profile("u1")["status"] == "ok"


def test_purge_account_keeps_other_counters_exact(server_db, db_session, make_profile, make_post):
    make_profile("leaving")
    make_profile("staying")
    staying_post = make_post("staying")
    leaving_post = make_post("leaving")
    leaving = for_identity("leaving")
    staying = for_identity("staying")

    feed.create_like(staying_post["id"], context=leaving)
    feed.create_comment(staying_post["id"], "bye", context=leaving)
    feed.create_follow("staying", context=leaving)
    feed.create_follow("leaving", context=staying)
    feed.create_like(leaving_post["id"], context=staying)

    result = feed.purge_account("leaving", reason="user request", context=system_context(request_id="req-9"))
    assert result["status"] == "deleted"
    assert result["removed"] == {"likes": 1, "comments": 1, "follows": 2}

    assert db_session.get(Profile, "leaving") is None
    assert db_session.get(Post, leaving_post["id"]) is None
    assert db_session.query(Like).count() == 0
    assert db_session.query(Comment).count() == 0
    assert db_session.query(Follow).count() == 0

    post_report = check_post_counters(db_session, staying_post["id"])
    assert post_report["likes_count"] == 0
    assert post_report["comments_count"] == 0
    profile_report = check_profile_counters(db_session, "staying")
    assert profile_report["followers_count"] == 0
    assert profile_report["following_count"] == 0
    check_no_orphaned_edges(db_session)

    events = feed.list_audit_events(event_type=EVENT_ACCOUNT_PURGED, context=system_context())
    assert events["count"] == 1
    assert events["events"][0]["target_ids"] == ["leaving"]
    assert events["events"][0]["request_id"] == "req-9"
