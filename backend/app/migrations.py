"""Bring the billing schema to the latest alembic revision.

Several workers may start at once, so upgrades are serialized through an
exclusive lock on a file next to ``alembic.ini``.
"""

from __future__ import annotations

import errno
import logging
import os
import sys
import time
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine.reflection import Inspector

from .database import SQLALCHEMY_DATABASE_URL, engine_options

if os.name == "posix":  # pragma: no cover - platform specific
    import fcntl
else:  # pragma: no cover - platform specific
    import msvcrt

LOGGER = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parent.parent
LOCK_PATH = BACKEND_DIR / ".alembic-migration.lock"
LOCK_POLL_SECONDS = 0.25
LOCK_TIMEOUT_ENV = "ALEMBIC_MIGRATION_LOCK_TIMEOUT"
DEFAULT_LOCK_TIMEOUT = 30.0

RevisionSentinel = tuple[str, Callable[[Inspector], bool]]

# Newest first: the first matching check identifies the schema of a database
# created before alembic tracked it.
REVISION_SENTINELS: Sequence[RevisionSentinel] = (
    (
        "20250101_0001",
        lambda inspector: inspector.has_table("bills")
        and inspector.has_table("bill_sequences"),
    ),
)

_LOCK_CONFLICT_ERRNOS = {errno.EACCES, errno.EAGAIN, errno.EBUSY}
_LOCK_CONFLICT_WINERRORS = {32, 33}


def _lock_timeout() -> float:
    raw = os.getenv(LOCK_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_LOCK_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if value <= 0:
        LOGGER.warning(
            "Ignoring %s=%r; waiting %.1f seconds for the migration lock",
            LOCK_TIMEOUT_ENV,
            raw,
            DEFAULT_LOCK_TIMEOUT,
        )
        return DEFAULT_LOCK_TIMEOUT
    return value


class MigrationLock:
    """Exclusive, non-reentrant file lock held while alembic runs."""

    def __init__(self, path: Path = LOCK_PATH, *, timeout: Optional[float] = None) -> None:
        self.path = path
        self.timeout = _lock_timeout() if timeout is None else timeout
        self._handle = None

    def _try_lock(self) -> bool:
        try:
            if os.name == "posix":  # pragma: no cover - platform specific
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            else:  # pragma: no cover - platform specific
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError as error:
            conflict = (
                isinstance(error, BlockingIOError)
                or error.errno in _LOCK_CONFLICT_ERRNOS
                or getattr(error, "winerror", None) in _LOCK_CONFLICT_WINERRORS
            )
            if not conflict:
                raise
            return False
        return True

    def __enter__(self) -> "MigrationLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self.path.open("a+")
        deadline = time.monotonic() + self.timeout
        LOGGER.debug("Waiting for migration lock %s", self.path)
        while not self._try_lock():
            if time.monotonic() >= deadline:
                self._handle.close()
                self._handle = None
                raise TimeoutError(f"Timed out after {self.timeout:.1f}s waiting for {self.path}")
            time.sleep(LOCK_POLL_SECONDS)
        return self

    def __exit__(self, *_exc) -> None:
        try:
            if os.name == "posix":  # pragma: no cover - platform specific
                fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
            else:  # pragma: no cover - platform specific
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, 1)
        except OSError:  # pragma: no cover - closing the handle releases it anyway
            LOGGER.debug("Migration lock %s was already released", self.path)
        finally:
            self._handle.close()
            self._handle = None


def detect_untracked_revision(
    inspector: Inspector, sentinels: Iterable[RevisionSentinel] = REVISION_SENTINELS
) -> str | None:
    """Revision matching a schema that has tables but no ``alembic_version``."""

    for revision, check in sentinels:
        if check(inspector):
            return revision
    return None


def build_alembic_config(database_url: str | None = None) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url or SQLALCHEMY_DATABASE_URL)
    return config


def _stamp_untracked_schema(config: Config, url: str) -> bool:
    """Stamp a pre-existing schema; return ``True`` when it is already at head."""

    engine = create_engine(url, **engine_options(url))
    try:
        inspector = inspect(engine)
        if inspector.has_table("alembic_version"):
            return False
        if not [name for name in inspector.get_table_names() if name != "alembic_version"]:
            return False

        revision = detect_untracked_revision(inspector)
        if revision is None:
            LOGGER.warning("Found tables without alembic metadata that match no known revision")
            return False
    finally:
        engine.dispose()

    LOGGER.info("Stamping untracked schema as revision %s", revision)
    command.stamp(config, revision)
    return revision == ScriptDirectory.from_config(config).get_current_head()


def run_database_migrations(database_url: str | None = None) -> None:
    """Upgrade the database at ``database_url`` (or ``DATABASE_URL``) to head."""

    project_root = BACKEND_DIR.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    config = build_alembic_config(database_url or os.getenv("DATABASE_URL"))
    url = config.get_main_option("sqlalchemy.url")
    LOGGER.info("Running database migrations at %s", url)

    with MigrationLock():
        if _stamp_untracked_schema(config, url):
            return
        command.upgrade(config, "head")
