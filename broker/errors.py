class BrokerError(Exception):
    """Base class for failures reported back to the requesting participant.

    ``message`` is user-visible and is sent verbatim as the payload of an
    ``error`` event.
    """

    code = "BrokerError"
    message = "Request failed"

    def __init__(self, message: str = None):
        if message:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(BrokerError):
    code = "NotFound"
    message = "Room not found"


class RoomFull(BrokerError):
    code = "Full"
    message = "Room is full"


class Oversize(BrokerError):
    code = "Oversize"
    message = "Payload too large"


class InvalidRole(BrokerError):
    code = "InvalidRole"
    message = "Unknown role"


class InvalidPayload(BrokerError):
    code = "InvalidPayload"
    message = "Invalid request"


class AlreadyEngaged(BrokerError):
    code = "Busy"
    message = "Already waiting or in a session"


class RoomCodeExhausted(BrokerError):
    code = "CodeExhausted"
    message = "Could not allocate a room code, try again"


class StaleReference(BrokerError):
    """Event for a connection or session that no longer exists. Never shown to users."""

    code = "StaleReference"
    message = "Connection is gone"
