"""Unit-specific fixtures (no I/O beyond temporary SQLite files)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import pytest

from portview.registry_db import SqliteRegistrySource

if TYPE_CHECKING:
    from pathlib import Path

# Subset of the MacPorts registry schema that the reader touches.
_SCHEMA = [
    """
    CREATE TABLE ports (
        id INTEGER PRIMARY KEY,
        name TEXT COLLATE NOCASE,
        epoch INTEGER,
        version TEXT,
        revision INTEGER,
        variants TEXT,
        state TEXT
    )
    """,
    "CREATE TABLE dependencies (id INTEGER, name TEXT, variants TEXT)",
    """
    CREATE TABLE files (
        id INTEGER,
        path TEXT,
        actual_path TEXT,
        active INT,
        binary BOOL
    )
    """,
]


@pytest.fixture()
async def registry_db(tmp_path: Path) -> Path:
    """A registry.db with zlib installed, libpng depending on it, and an imaged gettext."""
    lib = tmp_path / "libz.dylib"
    lib.write_bytes(b"x" * 1024)

    path = tmp_path / "registry.db"
    async with aiosqlite.connect(path) as db:
        for statement in _SCHEMA:
            await db.execute(statement)
        await db.executemany(
            "INSERT INTO ports (id, name, epoch, version, revision, variants, state) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (1, "zlib", 0, "1.3.1", 0, "+universal", "installed"),
                (2, "libpng", 0, "1.6.43", 0, "", "installed"),
                (3, "gettext", 0, "0.22.5", 0, "", "imaged"),
            ],
        )
        await db.execute("INSERT INTO dependencies (id, name, variants) VALUES (2, 'zlib', '')")
        await db.executemany(
            "INSERT INTO files (id, path, actual_path, active, binary) VALUES (?, ?, ?, ?, ?)",
            [
                (1, "/opt/local/lib/libz.dylib", str(lib), 1, 1),
                (1, "/opt/local/lib/gone.dylib", str(tmp_path / "gone.dylib"), 1, 1),
            ],
        )
        await db.commit()
    return path


@pytest.fixture()
def sqlite_source(registry_db: Path) -> SqliteRegistrySource:
    return SqliteRegistrySource(registry_db)
