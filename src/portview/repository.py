"""Attribute repository: parsed port records, install state, derived indexes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from portview.models.package import PackageRecord, PackageState

if TYPE_CHECKING:
    from collections.abc import Iterable

log = structlog.get_logger()


@dataclass
class Repository:
    """In-memory maps built from the index files and the install registry.

    ``packages`` and the two derived indexes are rebuilt wholesale on every
    re-parse. ``states`` is owned by the reconciler and survives a re-parse.
    """

    # casefolded name → record  e.g. "py312-numpy" → PackageRecord(name="py312-numpy", ...)
    packages: dict[str, PackageRecord] = field(default_factory=dict)

    # casefolded name → install state; only packages seen in the registry
    states: dict[str, PackageState] = field(default_factory=dict)

    # category → casefolded names that declared it
    categories: dict[str, set[str]] = field(default_factory=dict)

    # name prefix ("py312", "p5") → casefolded names sharing it
    prefixes: dict[str, set[str]] = field(default_factory=dict)

    def rebuild(self, records: Iterable[PackageRecord]) -> int:
        """Replace every record with ``records``; later duplicates win."""
        packages: dict[str, PackageRecord] = {}
        for record in records:
            packages[record.key] = record

        self.packages = packages
        self._reindex()
        log.debug(
            "repository_rebuilt",
            packages=len(self.packages),
            categories=len(self.categories),
            prefixes=len(self.prefixes),
        )
        return len(self.packages)

    def _reindex(self) -> None:
        categories: dict[str, set[str]] = {}
        prefixes: dict[str, set[str]] = {}
        for key, record in self.packages.items():
            for category in record.categories:
                categories.setdefault(category, set()).add(key)
            prefix = record.prefix
            if prefix is not None:
                prefixes.setdefault(prefix.casefold(), set()).add(key)
        self.categories = categories
        self.prefixes = prefixes

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, name: str) -> PackageRecord | None:
        return self.packages.get(name.casefold())

    def state_of(self, name: str) -> PackageState | None:
        return self.states.get(name.casefold())

    def names(self) -> list[str]:
        return list(self.packages)

    def category_names(self) -> list[str]:
        return sorted(self.categories)

    def category_members(self, category: str) -> set[str]:
        return set(self.categories.get(category, ()))

    def prefix_members(self, prefix: str) -> set[str]:
        return set(self.prefixes.get(prefix.casefold(), ()))

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self.packages
