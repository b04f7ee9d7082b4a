import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Two complementary roles for attribute matchmaking, e.g. "seeker,responder"
MATCH_ROLES = tuple(r.strip() for r in os.getenv("MATCH_ROLES", "vent,listen").split(",") if r.strip())

# 10 MB per frame leaves room for inline base64 images
MAX_FRAME_BYTES = int(os.getenv("MAX_FRAME_BYTES", 10_000_000))
# Hard transport limit: uvicorn closes the socket (1009) above this. Frames between
# MAX_FRAME_BYTES and WS_MAX_SIZE get an error reply and the connection stays open.
WS_MAX_SIZE = int(os.getenv("WS_MAX_SIZE", 2 * MAX_FRAME_BYTES))

ROOM_CODE_LENGTH = int(os.getenv("ROOM_CODE_LENGTH", 6))
ROOM_CODE_ATTEMPTS = int(os.getenv("ROOM_CODE_ATTEMPTS", 20))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]


def validate_frame_limits(max_frame_bytes: int, ws_max_size: int):
    if max_frame_bytes <= 0:
        raise ValueError(f"MAX_FRAME_BYTES must be positive, got {max_frame_bytes}")
    if ws_max_size <= max_frame_bytes:
        raise ValueError(
            f"WS_MAX_SIZE ({ws_max_size}) must be larger than MAX_FRAME_BYTES ({max_frame_bytes}), "
            "otherwise oversize frames close the connection instead of getting an error reply"
        )


def validate_room_code_length(length: int):
    if length < 1:
        raise ValueError(f"ROOM_CODE_LENGTH must be at least 1, got {length}")


validate_frame_limits(MAX_FRAME_BYTES, WS_MAX_SIZE)
validate_room_code_length(ROOM_CODE_LENGTH)
