import os

import uvicorn

from utils.logging_utils import get_tagged_logger, setup_logging

setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="pedalcast-api")
logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    port = int(os.getenv("PORT", 8000))
    logger.info("Starting PedalCast API on port %d", port)
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
    )
