import os

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

from sqlalchemy import update

from feedgate.context import for_identity
from feedgate.errors import InvariantViolation
from feedgate.models import Comment, Like, Post, Profile, Save
from feedgate.services import engagement, feed
from feedgate.services.counters import (
    check_no_orphaned_edges,
    check_post_counters,
    check_profile_counters,
    record_edge_removed,
)


def test_like_conflict_and_unlike_scenario(server_db, make_profile, make_post):
    make_profile("u1")
    make_profile("u2")
    post = make_post("u1")
    u2 = for_identity("u2")

    first = feed.create_like(post["id"], context=u2)
    assert first["status"] == "created"
    assert first["post"]["likes_count"] == 1

    again = feed.create_like(post["id"], context=u2)
    assert again["status"] == "conflict"
    assert again["detail"]["like_id"] == first["like"]["id"]
    assert feed.get_post(post["id"], context=u2)["post"]["likes_count"] == 1

    removed = feed.delete_like(first["like"]["id"], context=u2)
    assert removed["status"] == "deleted"
    assert removed["post"]["likes_count"] == 0


def test_comment_round_trip_restores_count(server_db, make_profile, make_post):
    make_profile("u1")
    make_profile("u2")
    post = make_post("u1")
    u2 = for_identity("u2")
    feed.create_comment(post["id"], "first", context=u2)
    before = feed.get_post(post["id"], context=u2)["post"]["comments_count"]

    created = feed.create_comment(post["id"], "second", context=u2)
    assert created["post"]["comments_count"] == before + 1

    deleted = feed.delete_comment(created["comment"]["id"], context=u2)
    assert deleted["post"]["comments_count"] == before


def test_only_the_liker_can_unlike(server_db, make_profile, make_post):
    make_profile("u1")
    make_profile("u2")
    post = make_post("u1")
    like = feed.create_like(post["id"], context=for_identity("u2"))

    denied = feed.delete_like(like["like"]["id"], context=for_identity("u1"))
    assert denied["status"] == "denied"
    assert feed.get_post(post["id"])["post"]["likes_count"] == 1


def test_like_on_missing_post_is_not_found(server_db, make_profile):
    make_profile("u1")
    result = feed.create_like("no-such-post", context=for_identity("u1"))
    assert result["status"] == "not_found"
    assert result["entity"] == "post"


def test_delete_post_cascades_edges(server_db, db_session, make_profile, make_post):
    make_profile("u1")
    make_profile("u2")
    post = make_post("u1")
    u2 = for_identity("u2")
    feed.create_like(post["id"], context=u2)
    feed.create_comment(post["id"], "hello", context=u2)
    feed.create_save(post["id"], context=u2)

    result = feed.delete_post(post["id"], context=for_identity("u1"))
    assert result["status"] == "deleted"

    assert db_session.get(Post, post["id"]) is None
    assert db_session.query(Like).filter(Like.post_id == post["id"]).count() == 0
    assert db_session.query(Comment).filter(Comment.post_id == post["id"]).count() == 0
    assert db_session.query(Save).filter(Save.post_id == post["id"]).count() == 0
    check_no_orphaned_edges(db_session)
    assert check_profile_counters(db_session, "u1")["posts_count"] == 0


def test_post_counter_tracks_authored_posts(server_db, db_session, make_profile, make_post):
    make_profile("u1")
    make_post("u1")
    second = make_post("u1")
    assert feed.get_profile("u1")["profile"]["posts_count"] == 2

    feed.delete_post(second["id"], context=for_identity("u1"))
    report = check_profile_counters(db_session, "u1")
    assert report["posts_count"] == 1
    assert report["posts_actual"] == 1


def test_follow_counters(server_db, make_profile):
    make_profile("u1")
    make_profile("u2")
    u1 = for_identity("u1")

    follow = feed.create_follow("u2", context=u1)
    assert follow["status"] == "created"
    assert feed.get_profile("u1")["profile"]["following_count"] == 1
    assert feed.get_profile("u2")["profile"]["followers_count"] == 1

    duplicate = feed.create_follow("u2", context=u1)
    assert duplicate["status"] == "conflict"
    assert feed.get_profile("u2")["profile"]["followers_count"] == 1

    followers = feed.list_follows("u2", direction="followers")
    assert followers["count"] == 1
    assert followers["follows"][0]["follower_id"] == "u1"

    assert feed.delete_follow(follow["follow"]["id"], context=for_identity("u2"))["status"] == "denied"
    assert feed.delete_follow(follow["follow"]["id"], context=u1)["status"] == "deleted"
    assert feed.get_profile("u1")["profile"]["following_count"] == 0
    assert feed.get_profile("u2")["profile"]["followers_count"] == 0


def test_self_follow_is_allowed(server_db, make_profile):
    make_profile("u1")
    result = feed.create_follow("u1", context=for_identity("u1"))
    assert result["status"] == "created"
    profile = feed.get_profile("u1")["profile"]
    assert profile["followers_count"] == 1
    assert profile["following_count"] == 1


def test_counter_drift_is_an_invariant_violation(server_db, db_session, make_profile, make_post):
    make_profile("u1")
    post = make_post("u1")
    db_session.execute(update(Post).where(Post.id == post["id"]).values(likes_count=5))
    db_session.commit()

    with pytest.raises(InvariantViolation):
        check_post_counters(db_session, post["id"])

    with pytest.raises(InvariantViolation):
        feed.counter_report(post["id"], context=for_identity("u1"))


def test_missing_counter_target_is_a_noop(db_session):
    orphan = Like(user_id="ghost", post_id="gone")
    assert record_edge_removed(db_session, orphan) == 0
    assert db_session.query(Profile).count() == 0


def test_comment_by_vanished_author_is_not_found(server_db, db_session, make_profile, make_post, monkeypatch):
    make_profile("u1")
    post = make_post("u1")
    # Parent rows disappear between the existence checks and the insert.
    monkeypatch.setattr(engagement, "_get_or_404", lambda *args, **kwargs: None)

    result = feed.create_comment(post["id"], "hi", context=for_identity("ghost"))
    assert result["status"] == "not_found"
    assert result["entity"] == "profile"
    assert db_session.query(Comment).count() == 0
    assert feed.get_post(post["id"])["post"]["comments_count"] == 0


def test_comment_on_vanished_post_is_not_found(server_db, db_session, make_profile, monkeypatch):
    make_profile("u1")
    monkeypatch.setattr(engagement, "_get_or_404", lambda *args, **kwargs: None)

    result = feed.create_comment("gone-post", "hi", context=for_identity("u1"))
    assert result["status"] == "not_found"
    assert result["entity"] == "post"
    assert db_session.query(Comment).count() == 0
