import os

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

from feedgate.errors import AccessDenied
from feedgate.policy import Decision, Operation
from feedgate.storage_policy import (
    PUBLIC_BUCKETS,
    authorize_object,
    build_object_key,
    folder_owner,
    object_folders,
    require_object_access,
)


def test_object_folders():
    assert object_folders("u1/photo.jpg") == ["u1"]
    assert object_folders("u1/2024/photo.jpg") == ["u1", "2024"]
    assert object_folders("photo.jpg") == []
    assert folder_owner("photo.jpg") is None
    assert folder_owner("u1/a/b.png") == "u1"


@pytest.mark.parametrize("bucket", sorted(PUBLIC_BUCKETS))
def test_public_buckets_allow_anonymous_reads(bucket):
    assert authorize_object(bucket, "someone/photo.jpg", Operation.read, None) is Decision.allow


@pytest.mark.parametrize("operation", [Operation.create, Operation.update, Operation.delete])
def test_writes_scoped_to_own_folder(operation):
    assert authorize_object("posts", "u1/photo.jpg", operation, "u1").allowed
    assert not authorize_object("posts", "u2/photo.jpg", operation, "u1").allowed
    assert not authorize_object("posts", "u1/photo.jpg", operation, None).allowed
    assert not authorize_object("posts", "photo.jpg", operation, "u1").allowed


def test_unknown_bucket_denied():
    assert not authorize_object("private", "u1/photo.jpg", "read", "u1").allowed
    assert not authorize_object("private", "u1/photo.jpg", "create", "u1").allowed


def test_require_object_access_raises():
    require_object_access("avatars", "u1/me.png", "create", "u1")
    with pytest.raises(AccessDenied) as excinfo:
        require_object_access("avatars", "u2/me.png", "create", "u1")
    assert excinfo.value.entity == "storage_object"


def test_build_object_key_is_owned_by_requester():
    key = build_object_key("u1", "Holiday.JPG")
    assert folder_owner(key) == "u1"
    assert key.endswith(".jpg")
    assert authorize_object("stories", key, Operation.create, "u1").allowed
