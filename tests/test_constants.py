import pytest

from backend import BrokerBackend
from constants import MAX_FRAME_BYTES, WS_MAX_SIZE, validate_frame_limits, validate_room_code_length


class TestFrameLimits:
    def test_defaults_leave_room_for_error_replies(self):
        assert WS_MAX_SIZE > MAX_FRAME_BYTES
        validate_frame_limits(MAX_FRAME_BYTES, WS_MAX_SIZE)

    def test_transport_limit_must_exceed_frame_limit(self):
        validate_frame_limits(100, 101)
        with pytest.raises(ValueError):
            validate_frame_limits(100, 100)
        with pytest.raises(ValueError):
            validate_frame_limits(100, 50)

    def test_frame_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            validate_frame_limits(0, 10)


class TestRoomCodeLength:
    def test_length_is_wired_into_backend(self):
        backend = BrokerBackend(code_length=8)
        connection_id, _ = backend.router.connect()
        [created] = backend.router.dispatch(connection_id, "create_room")
        assert len(created.data) == 8
        assert created.data.isdigit()

    def test_default_length(self):
        backend = BrokerBackend()
        connection_id, _ = backend.router.connect()
        [created] = backend.router.dispatch(connection_id, "create_room")
        assert len(created.data) == 6

    def test_length_must_be_positive(self):
        with pytest.raises(ValueError):
            validate_room_code_length(0)
