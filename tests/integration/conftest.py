"""Integration test fixtures.

Provides a PortSession wired to index files under tmp_path and an in-memory
registry whose rows and modification time the test controls. Sample index
and rows come from tests/conftest.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from portview.config import Settings
from portview.models.registry import PackageDetails, RegistryRow
from portview.session import PortSession

if TYPE_CHECKING:
    from pathlib import Path


@dataclass
class FakeRegistry:
    rows: list[RegistryRow] | None
    mtime: float | None = 1.0
    details: dict[str, PackageDetails] = field(default_factory=dict)
    fetches: int = 0

    def modified_at(self) -> float | None:
        return self.mtime

    async def fetch_rows(self) -> list[RegistryRow] | None:
        self.fetches += 1
        return None if self.rows is None else list(self.rows)

    async def fetch_details(self, name: str) -> PackageDetails | None:
        return self.details.get(name.casefold())


@pytest.fixture()
def index_paths(tmp_path: Path, sample_index: bytes) -> tuple[Path, Path]:
    system = tmp_path / "PortIndex"
    system.write_bytes(sample_index)
    return system, tmp_path / "user" / "PortIndex"


@pytest.fixture()
def settings(index_paths: tuple[Path, Path]) -> Settings:
    system, user = index_paths
    return Settings(
        index={"system_path": str(system), "user_path": str(user)},
        outline={"protected_packages": ["MacPorts"]},
    )


@pytest.fixture()
def fake_registry(sample_rows: list[RegistryRow]) -> FakeRegistry:
    return FakeRegistry(
        rows=sample_rows,
        details={"zlib": PackageDetails(name="zlib", dependents=["libpng"], space=2048)},
    )


@pytest.fixture()
def session(settings: Settings, fake_registry: FakeRegistry) -> PortSession:
    return PortSession(settings, registry=fake_registry)
