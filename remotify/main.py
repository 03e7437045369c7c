"""Entry: start API server."""
import logging

import uvicorn

from remotify.config import API_HOST, API_PORT, LOG_LEVEL


def run() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "remotify.api.app:app",
        host=API_HOST,
        port=API_PORT,
        reload=False,
    )


if __name__ == "__main__":
    run()
