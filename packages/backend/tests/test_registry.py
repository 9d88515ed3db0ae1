"""Connection registry tests."""

import pytest

from chatroom.errors import DuplicateConnectionError, UnknownConnectionError
from chatroom.realtime.registry import ConnectionRegistry


@pytest.fixture()
def registry():
    return ConnectionRegistry(outbound_queue_size=4)


def test_new_connection_is_unregistered(registry):
    conn = registry.add("c1", transport="websocket")
    assert conn.name is None
    assert not conn.registered
    assert not conn.typing
    assert conn.transport == "websocket"
    assert conn.outbox.maxsize == 4
    assert registry.lookup("c1") is None


def test_bind_then_lookup(registry):
    registry.add("c1")
    registry.bind("c1", "alice")
    assert registry.lookup("c1") == "alice"
    assert registry.get("c1").registered


def test_bind_last_write_wins(registry):
    registry.add("c1")
    for name in ("alice", "alicia", "al"):
        registry.bind("c1", name)
    assert registry.lookup("c1") == "al"


def test_bind_unknown_connection(registry):
    with pytest.raises(UnknownConnectionError):
        registry.bind("ghost", "alice")


def test_lookup_unknown_connection_never_fails(registry):
    assert registry.lookup("ghost") is None


def test_duplicate_add(registry):
    registry.add("c1")
    with pytest.raises(DuplicateConnectionError):
        registry.add("c1")


def test_remove_is_idempotent(registry):
    registry.add("c1")
    registry.bind("c1", "alice")

    removed = registry.remove("c1")

    assert removed.name == "alice"
    assert registry.remove("c1") is None
    assert "c1" not in registry
    assert registry.lookup("c1") is None


def test_connections_snapshot_in_connect_order(registry):
    for cid in ("c1", "c2", "c3"):
        registry.add(cid)
    snapshot = registry.connections()
    registry.remove("c2")

    assert [c.id for c in snapshot] == ["c1", "c2", "c3"]
    assert [c.id for c in registry] == ["c1", "c3"]
    assert len(registry) == 2


def test_name_in_use_is_case_insensitive(registry):
    registry.add("c1")
    registry.add("c2")
    registry.bind("c1", "Alice")

    assert registry.name_in_use("alice")
    assert registry.name_in_use("ALICE", exclude="c2")
    assert not registry.name_in_use("alice", exclude="c1")
    assert not registry.name_in_use("bob")


def test_set_typing(registry):
    registry.add("c1")
    assert registry.set_typing("c1", "alice") is None
    assert registry.get("c1").typing
    assert registry.get("c1").typing_as == "alice"

    # Clearing hands back the name the indicator was shown under
    assert registry.set_typing("c1", None) == "alice"
    assert not registry.get("c1").typing
    with pytest.raises(UnknownConnectionError):
        registry.set_typing("ghost", "alice")
