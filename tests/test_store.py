import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import T0, RecordingConnection
from rpcsession.modules.session import NotFound, Session, SessionStore


def test_create_returns_unique_ids(store):
    """Each create registers a distinct session."""
    ids = [store.create() for _ in range(500)]
    assert len(set(ids)) == 500
    assert len(store) == 500


def test_create_then_get(store):
    """Created sessions are retrievable by id."""
    session_id = store.create()

    session = store.get_by_id(session_id)

    assert session is not None
    assert session.id == session_id
    assert session.created_at == session.last_used_at == T0
    assert session_id in store


def test_get_unknown(store):
    assert store.get_by_id("does-not-exist") is None


def test_destroy_by_id(store):
    """Destroyed sessions are gone from the index."""
    session_id = store.create()

    store.destroy_by_id(session_id)

    assert store.get_by_id(session_id) is None
    assert len(store) == 0


def test_destroy_by_id_unknown(store):
    """Destroying an unknown id is not found."""
    with pytest.raises(NotFound):
        store.destroy_by_id("does-not-exist")


def test_destroy_by_identity(store):
    """Destroy removes the exact instance passed in."""
    session = store.get_by_id(store.create())

    store.destroy(session)

    assert session.id not in store
    with pytest.raises(NotFound):
        store.destroy(session)


def test_destroy_foreign_instance(store, clock):
    """An instance that was never registered is not found."""
    store.create()
    with pytest.raises(NotFound):
        store.destroy(Session(clock=clock))
    assert len(store) == 1


def test_list_is_snapshot_in_creation_order(store):
    """Listing is ordered by creation and unaffected by later changes."""
    first = store.create()
    second = store.create()

    listing = store.list()
    store.create()
    store.destroy_by_id(first)

    assert [entry["id"] for entry in listing] == [first, second]
    assert [entry["id"] for entry in store.list()][0] == second


def test_list_empty(store):
    assert store.list() == []


def test_resolve(store):
    """Tokens resolve to live sessions only."""
    session_id = store.create()

    assert store.resolve(session_id) is store.get_by_id(session_id)
    assert store.resolve(None) is None
    assert store.resolve("") is None
    assert store.resolve(12345) is None
    assert store.resolve("unknown") is None


def test_release_connection(store):
    """A closed connection is detached from every session holding it."""
    conn = RecordingConnection()
    other = RecordingConnection()
    a = store.get_by_id(store.create())
    b = store.get_by_id(store.create())
    c = store.get_by_id(store.create())
    a.set_connection(conn)
    b.set_connection(conn)
    c.set_connection(other)

    assert store.release_connection(conn) == 2

    assert a.get_connection() is None
    assert b.get_connection() is None
    assert c.get_connection() is other


def test_destroyed_id_never_resolves_again(store):
    """A destroyed id stays dead."""
    session_id = store.create()
    store.destroy_by_id(session_id)

    for _ in range(100):
        store.create()

    assert store.get_by_id(session_id) is None


def test_destroy_racing_sweep_removes_once(clock):
    """Threads destroying sessions while a sweep expires them never double-remove."""
    store = SessionStore(timeout=10, clock=clock)
    sessions = [store.get_by_id(store.create()) for _ in range(200)]
    clock.advance(60)

    barrier = threading.Barrier(5)
    destroyed = []
    not_found = []
    swept = []

    def destroy_all(chunk):
        barrier.wait()
        for session in chunk:
            try:
                store.destroy(session)
                destroyed.append(session.id)
            except NotFound:
                not_found.append(session.id)

    def sweep():
        barrier.wait()
        swept.extend(store.sweep())

    chunks = [sessions[i::4] for i in range(4)]
    with ThreadPoolExecutor(max_workers=5) as pool:
        futures = [pool.submit(destroy_all, chunk) for chunk in chunks]
        futures.append(pool.submit(sweep))
        for future in futures:
            future.result()

    assert len(store) == 0
    assert len(destroyed) + len(swept) == 200
    assert set(destroyed).isdisjoint(swept)
    assert sorted(not_found) == sorted(swept)
