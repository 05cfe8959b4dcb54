#!/usr/bin/env python3
"""
Forum Recommender Server — entrypoint for uvicorn server.server:app.

For uvicorn server:app use server/__init__.py (exposes app from server.app).
"""

from .app import app


def main() -> None:
    import uvicorn

    from .config import get_config

    config = get_config()
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
