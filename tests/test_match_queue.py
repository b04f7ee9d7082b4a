import pytest

from broker.errors import AlreadyEngaged, InvalidPayload, InvalidRole
from broker.match_queue import MatchQueue
from broker.sessions import ORIGIN_MATCH


@pytest.fixture
def queue():
    return MatchQueue(roles=("seeker", "responder"))


class TestRequestMatch:
    def test_first_request_waits(self, queue):
        assert queue.request_match("a", "seeker", "grief") is None
        assert queue.waiting("seeker", "grief") == ["a"]
        assert queue.is_waiting("a")

    def test_complementary_request_forms_session(self, queue):
        queue.request_match("a", "seeker", "grief")
        session = queue.request_match("b", "responder", "grief")

        assert session is not None
        assert set(session.members) == {"a", "b"}
        assert session.origin == ORIGIN_MATCH
        assert not queue.is_waiting("a")
        assert not queue.is_waiting("b")
        assert len(queue) == 0

    def test_same_role_is_never_paired(self, queue):
        assert queue.request_match("a", "seeker", "grief") is None
        assert queue.request_match("b", "seeker", "grief") is None
        assert queue.waiting("seeker", "grief") == ["a", "b"]

    def test_different_tag_is_never_paired(self, queue):
        queue.request_match("a", "seeker", "grief")
        assert queue.request_match("b", "responder", "anxiety") is None
        assert queue.waiting("seeker", "grief") == ["a"]
        assert queue.waiting("responder", "anxiety") == ["b"]

    def test_longest_waiting_is_served_first(self, queue):
        for waiter in ("a", "b", "c"):
            queue.request_match(waiter, "seeker", "grief")

        first = queue.request_match("x", "responder", "grief")
        second = queue.request_match("y", "responder", "grief")

        assert first.peer_of("x") == "a"
        assert second.peer_of("y") == "b"
        assert queue.waiting("seeker", "grief") == ["c"]

    def test_tag_is_whitespace_insensitive(self, queue):
        queue.request_match("a", "seeker", " grief ")
        assert queue.request_match("b", "responder", "grief") is not None

    def test_unknown_role_rejected(self, queue):
        with pytest.raises(InvalidRole):
            queue.request_match("a", "lurker", "grief")
        assert len(queue) == 0

    def test_empty_tag_rejected(self, queue):
        with pytest.raises(InvalidPayload):
            queue.request_match("a", "seeker", "   ")

    def test_already_waiting_rejected(self, queue):
        queue.request_match("a", "seeker", "grief")
        with pytest.raises(AlreadyEngaged):
            queue.request_match("a", "seeker", "anxiety")
        assert queue.key_of("a") == ("seeker", "grief")


class TestRemove:
    def test_removed_waiter_is_never_matched(self, queue):
        queue.request_match("ghost", "seeker", "grief")
        assert queue.remove("ghost") is True

        assert queue.request_match("b", "responder", "grief") is None
        assert queue.waiting("responder", "grief") == ["b"]

    def test_remove_unknown_is_noop(self, queue):
        assert queue.remove("nobody") is False
        assert queue.remove("nobody") is False

    def test_remove_keeps_order_of_others(self, queue):
        for waiter in ("a", "b", "c"):
            queue.request_match(waiter, "seeker", "grief")
        queue.remove("b")
        assert queue.waiting("seeker", "grief") == ["a", "c"]

    def test_stale_head_is_skipped(self):
        live = {"b", "c"}
        queue = MatchQueue(roles=("seeker", "responder"), is_live=lambda cid: cid in live)
        queue.request_match("a", "seeker", "grief")
        queue.request_match("b", "seeker", "grief")

        session = queue.request_match("c", "responder", "grief")
        assert session.peer_of("c") == "b"
        assert queue.waiting("seeker", "grief") == []


class TestConfiguration:
    def test_roles_must_be_a_distinct_pair(self):
        with pytest.raises(ValueError):
            MatchQueue(roles=("only",))
        with pytest.raises(ValueError):
            MatchQueue(roles=("same", "same"))

    def test_complement(self, queue):
        assert queue.complement("seeker") == "responder"
        assert queue.complement("responder") == "seeker"

    def test_depths(self, queue):
        queue.request_match("a", "seeker", "grief")
        queue.request_match("b", "seeker", "grief")
        queue.request_match("c", "responder", "anxiety")
        assert queue.depths() == {"seeker": {"grief": 2}, "responder": {"anxiety": 1}}
