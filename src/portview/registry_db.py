"""Install-registry readers.

Every reader catches its infrastructure errors (``aiosqlite.Error``,
``OSError``) and reports ``None``: the session treats that as "source
unavailable" and keeps whatever state it already has. Errors are logged with
``exc_info=True`` so they remain observable.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import aiosqlite
import structlog

from portview.models.registry import PackageDetails, RegistryRow
from portview.reconciler import parse_registry_output

if TYPE_CHECKING:
    from portview.config import RegistrySettings

log = structlog.get_logger()

_SELECT_PORTS = "SELECT name, epoch, version, revision, state, variants FROM ports"

_SELECT_DEPENDENTS = """
SELECT DISTINCT ports.name
FROM dependencies JOIN ports ON ports.id = dependencies.id
WHERE dependencies.name = ? COLLATE NOCASE
ORDER BY ports.name
"""

_SELECT_ACTIVE_FILES = """
SELECT files.actual_path
FROM files JOIN ports ON ports.id = files.id
WHERE ports.name = ? COLLATE NOCASE AND files.active = 1
"""


class RegistrySource(Protocol):
    def modified_at(self) -> float | None: ...

    async def fetch_rows(self) -> list[RegistryRow] | None: ...

    async def fetch_details(self, name: str) -> PackageDetails | None: ...


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def _text(value: object) -> str:
    return "" if value is None else str(value)


class SqliteRegistrySource:
    """Reads the MacPorts ``registry.db`` (read-only)."""

    def __init__(self, db_path: str | Path) -> None:
        self._path = Path(db_path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def modified_at(self) -> float | None:
        return _mtime(self._path)

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(f"{self._path.resolve().as_uri()}?mode=ro", uri=True)

    async def fetch_rows(self) -> list[RegistryRow] | None:
        """All ports rows. Returns ``None`` if the registry can't be read."""
        try:
            async with self._connect() as db:
                cursor = await db.execute(_SELECT_PORTS)
                records = await cursor.fetchall()
        except aiosqlite.Error:
            log.warning("registry_read_error", path=str(self._path), exc_info=True)
            return None

        return [
            RegistryRow(
                name=_text(name),
                epoch=_text(epoch),
                version=_text(version),
                revision=_text(revision),
                state=_text(state),
                variants=_text(variants),
            )
            for name, epoch, version, revision, state, variants in records
        ]

    async def fetch_details(self, name: str) -> PackageDetails | None:
        """Dependents and on-disk size of one port. ``None`` on read failure."""
        try:
            async with self._connect() as db:
                cursor = await db.execute(_SELECT_DEPENDENTS, (name,))
                dependents = [row[0] for row in await cursor.fetchall()]
                cursor = await db.execute(_SELECT_ACTIVE_FILES, (name,))
                paths = [row[0] for row in await cursor.fetchall()]
        except aiosqlite.Error:
            log.warning("registry_read_error", path=str(self._path), port=name, exc_info=True)
            return None

        space = 0
        for path in paths:
            try:
                space += Path(path).lstat().st_size
            except OSError:
                # Registered but missing on disk; not counted.
                continue
        return PackageDetails(name=name, dependents=dependents, space=space)


class DumpRegistrySource:
    """Reads a ``name|epoch|version|revision|state|variants`` text dump."""

    def __init__(self, dump_path: str | Path) -> None:
        self._path = Path(dump_path).expanduser()

    def modified_at(self) -> float | None:
        return _mtime(self._path)

    async def fetch_rows(self) -> list[RegistryRow] | None:
        try:
            data = self._path.read_bytes()
        except OSError:
            log.warning("registry_read_error", path=str(self._path), exc_info=True)
            return None
        return parse_registry_output(data.decode("utf-8", errors="replace"))

    async def fetch_details(self, name: str) -> PackageDetails | None:
        # A dump carries no dependency or file tables.
        return None


def build_registry_source(settings: RegistrySettings) -> RegistrySource:
    if settings.source == "dump":
        if settings.dump_path is None:
            raise ValueError("registry.dump_path is required when registry.source is 'dump'")
        return DumpRegistrySource(settings.dump_path)
    return SqliteRegistrySource(settings.db_path)
