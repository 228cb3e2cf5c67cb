"""SubscriptionStore against in-memory SQLite."""
import pytest
from sqlalchemy.exc import OperationalError

from push_service.core.exceptions import StoreError
from push_service.models.subscription import PushSubscription


def _values(user_id, **extra):
    values = {"user_id": user_id, "p256dh_key": "p", "auth_key": "a"}
    values.update(extra)
    return values


def test_upsert_creates_record(store):
    sub = store.upsert_by_endpoint("https://push.example/e1", _values("u1"))
    assert sub.id is not None
    assert sub.user_id == "u1"
    assert sub.subscribed_at is not None
    assert sub.last_active_at is not None


def test_upsert_same_endpoint_overwrites_owner(store, db):
    store.upsert_by_endpoint("https://push.example/e1", _values("u1"))
    store.upsert_by_endpoint("https://push.example/e1", _values("u2", auth_key="new"))

    rows = db.query(PushSubscription).all()
    assert len(rows) == 1
    assert rows[0].user_id == "u2"
    assert rows[0].auth_key == "new"


def test_find_by_user_and_all(store):
    store.upsert_by_endpoint("e1", _values("u1"))
    store.upsert_by_endpoint("e2", _values("u1"))
    store.upsert_by_endpoint("e3", _values("u2"))

    assert [s.endpoint for s in store.find_by_user("u1")] == ["e1", "e2"]
    assert store.find_by_user("nobody") == []
    assert len(store.find_all()) == 3
    assert store.count_by_user("u1") == 2


def test_delete_by_user_and_endpoint_requires_both(store):
    store.upsert_by_endpoint("e1", _values("u1"))

    assert store.delete_by_user_and_endpoint("u2", "e1") is None
    deleted = store.delete_by_user_and_endpoint("u1", "e1")
    assert deleted.endpoint == "e1"
    assert store.find_all() == []


def test_delete_all_by_user_returns_count(store):
    store.upsert_by_endpoint("e1", _values("u1"))
    store.upsert_by_endpoint("e2", _values("u1"))
    store.upsert_by_endpoint("e3", _values("u2"))

    assert store.delete_all_by_user("u1") == 2
    assert store.delete_all_by_user("u1") == 0
    assert [s.endpoint for s in store.find_all()] == ["e3"]


def test_delete_by_endpoint_is_idempotent(store):
    store.upsert_by_endpoint("e1", _values("u1"))
    store.delete_by_endpoint("e1")
    store.delete_by_endpoint("e1")
    assert store.find_all() == []


def test_mark_active_moves_timestamp(store):
    sub = store.upsert_by_endpoint("e1", _values("u1"))
    before = sub.last_active_at.replace(tzinfo=None)
    store.mark_active(sub)
    # SQLite hands back naive datetimes
    assert sub.last_active_at.replace(tzinfo=None) >= before


def test_mark_active_leaves_instance_clean(store, db):
    sub = store.upsert_by_endpoint("e1", _values("u1"))
    store.mark_active(sub)
    assert sub not in db.dirty


def test_mark_active_on_deleted_record_is_noop(store):
    sub = store.upsert_by_endpoint("e1", _values("u1"))
    store.delete_by_endpoint("e1")
    store.mark_active(sub)
    assert store.find_all() == []


def test_sqlalchemy_errors_become_store_errors(store, db, monkeypatch):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", broken_commit)
    with pytest.raises(StoreError):
        store.upsert_by_endpoint("e1", _values("u1"))
