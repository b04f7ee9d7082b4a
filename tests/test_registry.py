import pytest

from broker.registry import ConnectionRegistry
from broker.sessions import Session, SessionIndex
from broker.errors import StaleReference


@pytest.fixture
def registry():
    return ConnectionRegistry()


class TestConnectionRegistry:
    def test_register_assigns_unique_ids(self, registry):
        first, second = registry.register(), registry.register()
        assert first != second
        assert len(registry) == 2
        assert registry.get(first).connected_at

    def test_register_duplicate_id_rejected(self, registry):
        registry.register("a")
        with pytest.raises(ValueError):
            registry.register("a")

    def test_unknown_ids_are_noops(self, registry):
        assert registry.unregister("nobody") is False
        assert registry.session_of("nobody") is None
        assert registry.get("nobody") is None

    def test_session_index_is_symmetric(self, registry):
        registry.register("a")
        registry.register("b")
        session = Session(members=("a", "b"))

        registry.attach_session(session)
        assert registry.session_of("a") is session
        assert registry.session_of("b") is session

        registry.detach_session(session)
        assert registry.session_of("a") is None
        assert registry.session_of("b") is None

    def test_detach_tolerates_unregistered_member(self, registry):
        registry.register("a")
        registry.register("b")
        session = Session(members=("a", "b"))
        registry.attach_session(session)
        registry.unregister("b")

        registry.detach_session(session)
        assert registry.session_of("a") is None


class TestSession:
    def test_peer_of(self):
        session = Session(members=("a", "b"))
        assert session.peer_of("a") == "b"
        assert session.peer_of("b") == "a"
        with pytest.raises(StaleReference):
            session.peer_of("c")

    def test_members_must_differ(self):
        with pytest.raises(ValueError):
            Session(members=("a", "a"))

    def test_index_add_discard(self):
        index = SessionIndex()
        session = index.add(Session(members=("a", "b")))
        assert session in index
        assert index.get(session.id) is session
        assert index.discard(session) is True
        assert index.discard(session) is False
        assert len(index) == 0
