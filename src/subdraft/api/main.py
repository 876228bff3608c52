# src/subdraft/api/main.py
from __future__ import annotations

from subdraft.api.app import app  # noqa: F401
from subdraft.api.config import load_config


def run() -> None:
    """
    Programmatic runner:
    python -m subdraft.api.main
    """
    import uvicorn  # local import to keep import graph light

    cfg = load_config()
    uvicorn.run("subdraft.api.main:app", host=cfg.api_host, port=cfg.api_port, reload=False)


if __name__ == "__main__":
    run()
