"""Main entry point"""

import logging

import uvicorn

from slackwatch.api import build_app
from slackwatch.config import HOST, LOG_LEVEL, PORT
from slackwatch.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging(LOG_LEVEL)
    app = build_app()
    logging.getLogger(__name__).info(f"Server is running on http://{HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
