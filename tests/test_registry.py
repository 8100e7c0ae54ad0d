import pytest

from conftest import make_entry
from rpcnaming.errors import ValidationError
from rpcnaming.naming.models import Entry, EntryKind
from rpcnaming.naming.registry import NameRegistry


def test_register_then_lookup_returns_the_entry(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry(kind="rmi", iface=["add", "mul"], meta={"zone": "a"}))

    entries = registry.lookup_local("org.example.calc")

    assert len(entries) == 1
    entry = entries[0]
    assert (entry.host, entry.port) == ("10.0.0.1", 6001)
    assert entry.kind is EntryKind.RMI
    assert entry.iface == ["add", "mul"]
    assert entry.meta == {"zone": "a"}
    assert entry.registered_at == clock.now


def test_register_does_not_mutate_the_given_entry(clock):
    registry = NameRegistry(clock=clock)
    original = make_entry()
    registry.register(original)
    assert original.registered_at is None


@pytest.mark.parametrize("field, value", [("name", ""), ("host", ""), ("port", 0)])
def test_register_requires_name_host_and_port(clock, field, value):
    registry = NameRegistry(clock=clock)
    kwargs = {"name": "svc", "host": "h", "port": 1, field: value}
    with pytest.raises(ValidationError):
        registry.register(Entry(**kwargs))
    assert registry.list_all() == {}


def test_lease_expires_lazily(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry(lease_seconds=1))

    assert len(registry.lookup_local("org.example.calc")) == 1
    clock.advance(0.999)
    assert len(registry.lookup_local("org.example.calc")) == 1
    clock.advance(0.001)
    assert registry.lookup_local("org.example.calc") == []

    # never purged by a read: still in the raw table
    assert len(registry.list_all()["org.example.calc"]) == 1


def test_entry_without_lease_never_expires(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry())
    clock.advance(10 ** 7)
    assert len(registry.lookup_local("org.example.calc")) == 1


def test_expired_entries_are_dropped_when_the_name_is_written(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry(host="a", lease_seconds=1))
    clock.advance(5)
    registry.register(make_entry(host="b"))

    assert [e.host for e in registry.list_all()["org.example.calc"]] == ["b"]


def test_unregister_removes_only_the_matching_instance(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry(host="a", port=1))
    registry.register(make_entry(host="b", port=2))

    removed = registry.unregister("org.example.calc", "a", 1)

    assert removed == 1
    assert [(e.host, e.port) for e in registry.lookup_local("org.example.calc")] == [("b", 2)]


def test_unregister_last_instance_drops_the_name(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry())
    registry.unregister("org.example.calc", "10.0.0.1", 6001)
    assert "org.example.calc" not in registry.names()


def test_unregister_without_match_is_a_no_op(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry())
    assert registry.unregister("org.example.calc", "10.0.0.1", 9999) == 0
    assert registry.unregister("unknown", "x", 1) == 0
    assert len(registry.lookup_local("org.example.calc")) == 1


def test_unregister_requires_a_name(clock):
    registry = NameRegistry(clock=clock)
    with pytest.raises(ValidationError):
        registry.unregister("", "h", 1)


def test_re_registering_appends_a_duplicate(clock):
    registry = NameRegistry(clock=clock)
    registry.register(make_entry())
    registry.register(make_entry())
    assert len(registry.lookup_local("org.example.calc")) == 2

    registry.unregister("org.example.calc", "10.0.0.1", 6001)
    assert registry.lookup_local("org.example.calc") == []


def test_entry_accepts_legacy_field_names():
    entry = Entry.model_validate(
        {"name": "/org/service/db", "host": "10.0.0.5", "port": 5432, "type": "SERVICE", "ttl": 30}
    )
    assert entry.kind is EntryKind.SERVICE
    assert entry.lease_seconds == 30
    assert entry.to_wire()["leaseSeconds"] == 30
    assert entry.to_wire()["kind"] == "service"
