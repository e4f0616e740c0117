import os

os.environ.setdefault("DB_BACKEND", "sqlite")

from feedgate.context import for_identity


def test_core_imports():
    import feedgate.context  # noqa: F401
    import feedgate.models  # noqa: F401
    import feedgate.policy  # noqa: F401
    import feedgate.storage_policy  # noqa: F401
    import feedgate.audit  # noqa: F401
    import feedgate.services.feed  # noqa: F401


def test_core_smoke_lifecycle(server_db, make_profile):
    from feedgate.services import feed

    make_profile("u-author", "author")
    make_profile("u-reader", "reader")
    author = for_identity("u-author")
    reader = for_identity("u-reader")

    post = feed.create_post(image_url="https://cdn.example.com/p.jpg", caption="first", context=author)
    assert post["status"] == "created"
    post_id = post["post"]["id"]

    like = feed.create_like(post_id, context=reader)
    assert like["post"]["likes_count"] == 1

    comment = feed.create_comment(post_id, "nice", context=reader)
    assert comment["post"]["comments_count"] == 1

    saved = feed.create_save(post_id, context=reader)
    assert saved["status"] == "created"

    follow = feed.create_follow("u-author", context=reader)
    assert follow["status"] == "created"

    message = feed.create_message("u-author", "hi there", context=reader)
    assert message["status"] == "created"

    report = feed.counter_report(post_id, context=reader)
    assert report["status"] == "ok"
    assert report["post"]["likes_actual"] == 1
    assert report["owner"]["followers_actual"] == 1
    assert report["owner"]["posts_actual"] == 1

    deleted = feed.delete_post(post_id, context=author)
    assert deleted["status"] == "deleted"
