"""
Convenience entrypoint to run the hotel desk API with uvicorn.

Example:
  python -m apps.hotel --reload
"""
import os

import uvicorn


def main() -> None:
    reload = os.getenv("HOTEL_RELOAD", "false").lower() == "true"
    host = os.getenv("HOTEL_HOST", "127.0.0.1")
    port = int(os.getenv("HOTEL_PORT", "8000"))
    uvicorn.run(
        "apps.hotel.app.main:app",
        host=host,
        port=port,
        reload=reload,
        reload_dirs=["apps", "libs"] if reload else None,
    )


if __name__ == "__main__":
    main()
