"""Fleet billing backend package.

The FastAPI application is resolved lazily so that alembic and the CLI
scripts can import models and services without building the app.
"""

from __future__ import annotations


def __getattr__(name: str):
    if name == "app":
        from .main import app

        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["app"]
