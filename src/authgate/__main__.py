"""authgate entrypoint.

Run with:
  python -m authgate
"""

import logging
import os

import uvicorn


def main() -> None:
    logging.basicConfig(
        level=os.getenv("AUTHGATE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("AUTHGATE_HOST", "0.0.0.0")
    port = int(os.getenv("AUTHGATE_PORT", "8000"))
    reload = os.getenv("AUTHGATE_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("authgate.app:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
