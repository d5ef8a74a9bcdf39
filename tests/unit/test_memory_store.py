"""Unit tests for the MemoryEntityStore."""

import pytest

from restsync.domain.entities import Entity, attr, has_many
from restsync.domain.exceptions import StoreError
from restsync.infrastructure.store import MemoryEntityStore
from tests.models import Comment, Membership, Post, Profile, Tagged, User


@pytest.fixture
def store() -> MemoryEntityStore:
    return MemoryEntityStore()


def _posts(store: MemoryEntityStore, rows: list[dict]) -> None:
    store.upsert(Post, [Post(row) for row in rows])


def test_upsert_returns_synced_instances(store: MemoryEntityStore):
    stored = store.upsert(Post, [Post({"id": 1, "title": "Hello"})])

    assert len(stored) == 1
    assert stored[0].title == "Hello"
    assert stored[0].dirty_fields() == []


def test_upsert_replaces_by_primary_key(store: MemoryEntityStore):
    store.upsert(Post, [Post({"id": 1, "title": "Old"})])
    store.upsert(Post, [Post({"id": 1, "title": "New"})])

    assert [post.title for post in store.all(Post)] == ["New"]


def test_upsert_without_primary_key_fails(store: MemoryEntityStore):
    with pytest.raises(StoreError):
        store.upsert(Post, [Post({"title": "No id"})])


def test_reads_return_fresh_instances(store: MemoryEntityStore):
    store.upsert(Post, [Post({"id": 1, "title": "Hello"})])

    first = store.find(Post, 1)
    first.title = "Changed locally"

    assert store.find(Post, 1).title == "Hello"


def test_delete_and_flush(store: MemoryEntityStore):
    _posts(store, [{"id": 1}, {"id": 2}])
    store.upsert(User, [User({"id": 1})])

    assert store.delete(Post, 1) is True
    assert store.delete(Post, 1) is False
    assert [post.id for post in store.all(Post)] == [2]

    store.flush(Post)
    assert store.all(Post) == []
    assert len(store.all(User)) == 1

    store.flush()
    assert store.all(User) == []


def test_upsert_normalizes_loaded_relations(store: MemoryEntityStore):
    post = Post(
        {
            "id": 1,
            "title": "With relations",
            "author": {"id": 9, "name": "Ada"},
            "comments": [{"id": 100, "body": "First"}, {"id": 101, "body": "Second"}],
        }
    )

    store.upsert(Post, [post])

    assert store.find(Post, 1).author_id == 9
    assert store.find(User, 9).name == "Ada"
    assert sorted(comment.post_id for comment in store.all(Comment)) == [1, 1]


def test_where_in_single_key(store: MemoryEntityStore):
    _posts(store, [{"id": 1}, {"id": 2}, {"id": 3}])

    result = store.query(Post).where_in("id", [3, 1]).get()

    assert sorted(post.id for post in result) == [1, 3]


def test_where_in_composite_key_matches_whole_tuple(store: MemoryEntityStore):
    store.upsert(
        Membership,
        [
            Membership({"user_id": 1, "group_id": 1}),
            Membership({"user_id": 1, "group_id": 2}),
            Membership({"user_id": 2, "group_id": 1}),
        ],
    )

    result = store.query(Membership).where_in(("user_id", "group_id"), [(1, 2), (2, 1)]).get()

    assert sorted(m.primary_key_value() for m in result) == [(1, 2), (2, 1)]


def test_composite_find_and_delete(store: MemoryEntityStore):
    store.upsert(Membership, [Membership({"user_id": 1, "group_id": 2, "role": "owner"})])

    assert store.find(Membership, [1, 2]).role == "owner"
    assert store.delete(Membership, (1, 2)) is True
    assert store.find(Membership, (1, 2)) is None


def test_order_by_is_a_stable_multi_key_sort(store: MemoryEntityStore):
    _posts(
        store,
        [
            {"id": 1, "status": "draft", "title": "b"},
            {"id": 2, "status": "published", "title": "a"},
            {"id": 3, "status": "draft", "title": "a"},
            {"id": 4, "status": "published", "title": "c"},
        ],
    )

    result = store.query(Post).order_by("status", "desc").order_by("title").get()

    assert [post.id for post in result] == [2, 4, 3, 1]


def test_order_by_places_missing_values_first_ascending(store: MemoryEntityStore):
    _posts(
        store,
        [
            {"id": 1, "created_at": "2024-02-01"},
            {"id": 2, "created_at": None},
            {"id": 3, "created_at": "2024-01-01"},
        ],
    )

    ascending = store.query(Post).order_by("created_at").get()
    descending = store.query(Post).order_by("created_at", "desc").get()

    assert [post.id for post in ascending] == [2, 3, 1]
    assert [post.id for post in descending] == [1, 3, 2]


def test_order_by_undeclared_field_keeps_order(store: MemoryEntityStore):
    _posts(store, [{"id": 3}, {"id": 1}, {"id": 2}])

    result = store.query(Post).order_by("popularity", "desc").get()

    assert [post.id for post in result] == [3, 1, 2]


def test_order_by_undeclared_field_defers_to_later_keys(store: MemoryEntityStore):
    _posts(store, [{"id": 3}, {"id": 1}, {"id": 2}])

    result = store.query(Post).order_by("popularity").order_by("id").get()

    assert [post.id for post in result] == [1, 2, 3]


def test_order_by_unknown_direction_fails(store: MemoryEntityStore):
    with pytest.raises(StoreError):
        store.query(Post).order_by("title", "sideways")


def test_order_by_incomparable_values_fails(store: MemoryEntityStore):
    _posts(store, [{"id": 1, "title": "a"}, {"id": 2, "title": 5}])

    with pytest.raises(StoreError):
        store.query(Post).order_by("title").get()


def test_with_relation_loads_belongs_to(store: MemoryEntityStore):
    store.upsert(User, [User({"id": 9, "name": "Ada"})])
    _posts(store, [{"id": 1, "author_id": 9}, {"id": 2, "author_id": None}])

    result = store.query(Post).with_relation("author").order_by("id").get()

    assert result[0].author.name == "Ada"
    assert result[1].author is None


def test_with_relation_loads_has_many_with_constraint(store: MemoryEntityStore):
    _posts(store, [{"id": 1}, {"id": 2}])
    store.upsert(
        Comment,
        [
            Comment({"id": 10, "post_id": 1, "body": "b"}),
            Comment({"id": 11, "post_id": 1, "body": "a"}),
        ],
    )

    result = (
        store.query(Post)
        .with_relation("comments", lambda query: query.order_by("body"))
        .order_by("id")
        .get()
    )

    assert [comment.body for comment in result[0].comments] == ["a", "b"]
    assert result[1].comments == []


def test_with_relation_nested(store: MemoryEntityStore):
    store.upsert(User, [User({"id": 9, "name": "Ada"})])
    store.upsert(Profile, [Profile({"id": 5, "user_id": 9, "bio": "Mathematician"})])
    _posts(store, [{"id": 1, "author_id": 9}])

    result = (
        store.query(Post)
        .with_relation("author", lambda query: query.with_relation("profile"))
        .get()
    )

    assert result[0].author.profile.bio == "Mathematician"


def test_with_unknown_relation_fails(store: MemoryEntityStore):
    with pytest.raises(StoreError):
        store.query(Post).with_relation("editor")


# ── Transformed fields ──


def test_reads_do_not_transform_stored_values_again(store: MemoryEntityStore):
    stored = store.upsert(Tagged, [Tagged({"id": 1, "tags": [1, 2]})])

    assert stored[0].tags == [10, 20]
    assert store.find(Tagged, 1).tags == [10, 20]
    assert store.all(Tagged)[0].tags == [10, 20]
    assert store.query(Tagged).where_in("id", [1]).get()[0].tags == [10, 20]
    assert store.find(Tagged, 1).dirty_fields() == []


# ── Composite keys with child relations ──


class Group(Entity):
    entity = "groups"
    primary_key = ("org_id", "code")

    @classmethod
    def fields(cls):
        return {
            "org_id": attr(None),
            "code": attr(None),
            "comments": has_many(Comment, "post_id"),
        }


class KeyedGroup(Group):
    @classmethod
    def fields(cls):
        return {
            "org_id": attr(None),
            "code": attr(None),
            "comments": has_many(Comment, "post_id", local_key="org_id"),
        }


def test_child_relation_on_composite_key_needs_local_key(store: MemoryEntityStore):
    group = Group({"org_id": 1, "code": "a", "comments": [{"id": 9}]})

    with pytest.raises(StoreError):
        store.upsert(Group, [group])


def test_child_relation_with_explicit_local_key(store: MemoryEntityStore):
    group = KeyedGroup({"org_id": 1, "code": "a", "comments": [{"id": 9, "body": "Hi"}]})

    store.upsert(KeyedGroup, [group])

    assert store.find(Comment, 9).post_id == 1
    loaded = store.query(KeyedGroup).with_relation("comments").get()
    assert [comment.body for comment in loaded[0].comments] == ["Hi"]
