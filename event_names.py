# Inbound events (participant -> broker)
JOIN_QUEUE = "join_queue"
CREATE_ROOM = "create_room"
JOIN_ROOM = "join_room"
SEND_MESSAGE = "send_message"
TYPING_START = "typing_start"
TYPING_STOP = "typing_stop"
LEAVE = "leave"

# Outbound events (broker -> participant)
CONNECTED = "connected" # {connectionId}
MATCH_FOUND = "match_found" # {sessionId}
ROOM_CREATED = "room_created" # code string
START_CHAT = "start_chat" # no payload
RECEIVE_MESSAGE = "receive_message" # relayed payload, verbatim
PARTNER_TYPING = "partner_typing" # bool
PARTNER_LEFT = "partner_left" # room session torn down or peer left explicitly
PARTNER_DISCONNECTED = "partner_disconnected" # matched peer's socket closed
ERROR = "error" # message string

# **Frame shape**
# - `{"event": "<name>", "data": <payload>}` in both directions
# - `data` is omitted or null for events without a payload
