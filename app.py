import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from fancychat.core.logging import setup_logger

logger = setup_logger()


def start() -> None:
    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", 8000))
    reload = os.environ.get("RELOAD", "false").lower() == "true"
    log_level = os.environ.get("LOG_LEVEL", "info").lower()

    logger.info(f"Starting Uvicorn server on {host}:{port} (reload={reload}, log_level={log_level})")

    uvicorn.run(
        app="fancychat.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )

if __name__ == "__main__":
    start()
