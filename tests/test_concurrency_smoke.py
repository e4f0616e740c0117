import os
from concurrent.futures import ThreadPoolExecutor

os.environ.setdefault("DB_BACKEND", "sqlite")

from feedgate.context import for_identity
from feedgate.db import DB
from feedgate.models import Like, Post
from feedgate.services import feed

LIKERS = [f"liker_{i}" for i in range(8)]


def test_concurrent_likes_match_edge_count(server_db, make_profile, make_post):
    make_profile("owner")
    for user_id in LIKERS:
        make_profile(user_id)
    post = make_post("owner")

    def _like(user_id: str) -> dict:
        return feed.create_like(post["id"], context=for_identity(user_id))

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(_like, LIKERS))

    assert all(result["status"] == "created" for result in results)

    db = DB.SessionLocal()
    try:
        stored = db.get(Post, post["id"])
        rows = db.query(Like).filter(Like.post_id == post["id"]).count()
        assert rows == len(LIKERS)
        assert stored.likes_count == rows
    finally:
        db.close()


def test_concurrent_like_and_unlike_settle(server_db, make_profile, make_post):
    make_profile("owner")
    for user_id in LIKERS:
        make_profile(user_id)
    post = make_post("owner")

    likes = {}
    for user_id in LIKERS[:4]:
        result = feed.create_like(post["id"], context=for_identity(user_id))
        likes[user_id] = result["like"]["id"]

    def _unlike(user_id: str) -> dict:
        return feed.delete_like(likes[user_id], context=for_identity(user_id))

    def _like(user_id: str) -> dict:
        return feed.create_like(post["id"], context=for_identity(user_id))

    with ThreadPoolExecutor(max_workers=4) as executor:
        futures = [executor.submit(_unlike, user_id) for user_id in LIKERS[:4]]
        futures += [executor.submit(_like, user_id) for user_id in LIKERS[4:]]
        results = [future.result() for future in futures]

    assert {result["status"] for result in results} == {"created", "deleted"}

    report = feed.counter_report(post["id"], context=for_identity("owner"))
    assert report["status"] == "ok"
    assert report["post"]["likes_count"] == 4
    assert report["post"]["likes_actual"] == 4
