import uvicorn
from constants import HOST, LOG_FILE, LOG_LEVEL, PORT, WS_MAX_SIZE
from logging_config import setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from app import app
from logging_config import get_logger

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info(f"Starting PairChat broker on {HOST}:{PORT}")
    # Single worker: all broker state lives in this process
    uvicorn.run(app, host=HOST, port=PORT, ws_max_size=WS_MAX_SIZE, workers=1)
