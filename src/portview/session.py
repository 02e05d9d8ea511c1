"""Session state and the change-detection refresh driver.

A ``PortSession`` owns one ``Repository``. ``initialize`` compares the
modification times of the index files and the registry with the ones seen
on the previous call and only re-parses or re-reconciles what changed.
Calls must not overlap on one session: a rebuild replaces the maps in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from portview.actions import ActionMarks
from portview.errors import SourceUnavailableError, UnknownPackageError
from portview.grouping import (
    SortColumn,
    SortPolicy,
    build_buckets,
    build_outline,
    classify_package,
    compute_subgroup,
)
from portview.index_parser import ParseReport, parse_index
from portview.links import package_links
from portview.models.outline import PackageDescription
from portview.models.package import PackageState
from portview.reconciler import ReconcileReport, reconcile
from portview.registry_db import build_registry_source
from portview.repository import Repository
from portview.versions import candidate_version

if TYPE_CHECKING:
    from collections.abc import Iterable

    from portview.config import Settings
    from portview.models.outline import GroupHeader, GroupRef, OutlineNode, PackageRow, Status
    from portview.registry_db import RegistrySource

log = structlog.get_logger()


@dataclass
class RefreshReport:
    parsed: ParseReport | None = None
    reconciled: ReconcileReport | None = None
    unavailable: list[SourceUnavailableError] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.parsed is not None or self.reconciled is not None


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


class PortSession:
    def __init__(
        self,
        settings: Settings,
        registry: RegistrySource | None = None,
        repo: Repository | None = None,
    ) -> None:
        self.settings = settings
        if registry is None:
            registry = build_registry_source(settings.registry)
        self.registry = registry
        self.repo = repo if repo is not None else Repository()
        self.protected = settings.protected_names
        self.sort = SortPolicy(
            column=SortColumn(settings.outline.sort_column),
            descending=settings.outline.sort_descending,
        )
        self.marks = ActionMarks(self.protected)
        self._index_mtimes: tuple[float | None, float | None] | None = None
        self._registry_mtime: float | None = None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    @property
    def index_paths(self) -> tuple[Path, Path]:
        return (
            Path(self.settings.index.system_path).expanduser(),
            Path(self.settings.index.user_path).expanduser(),
        )

    def _read_indexes(self) -> list[bytes]:
        system, user = self.index_paths
        try:
            sources = [system.read_bytes()]
        except OSError as exc:
            raise SourceUnavailableError(str(system), f"cannot read index: {exc}") from exc

        # The user overlay is optional.
        if user.exists():
            try:
                sources.append(user.read_bytes())
            except OSError as exc:
                raise SourceUnavailableError(str(user), f"cannot read index: {exc}") from exc
        return sources

    def refresh_indexes(self, force: bool = False) -> ParseReport | None:
        """Re-parse the index files if either changed. ``None`` if skipped.

        Raises:
            SourceUnavailableError: the system index (or an existing user
                overlay) can't be read. The repository is left untouched.
        """
        system, user = self.index_paths
        mtimes = (_mtime(system), _mtime(user))
        if not force and mtimes == self._index_mtimes:
            log.debug("index_unchanged")
            return None

        report = parse_index(self.repo, *self._read_indexes())
        self._index_mtimes = mtimes
        return report

    async def refresh_registry(self, force: bool = False) -> ReconcileReport | None:
        """Reconcile install state if the registry changed. ``None`` if skipped.

        Raises:
            SourceUnavailableError: the registry can't be read. Existing state
                is kept.
        """
        mtime = self.registry.modified_at()
        if mtime is None:
            raise SourceUnavailableError("registry", "registry is missing")
        if not force and mtime == self._registry_mtime:
            log.debug("registry_unchanged")
            return None

        rows = await self.registry.fetch_rows()
        if rows is None:
            raise SourceUnavailableError("registry", "registry could not be read")

        report = reconcile(
            self.repo,
            rows,
            installed_states=self.settings.registry.installed_states,
            imaged_states=self.settings.registry.imaged_states,
        )
        self._registry_mtime = mtime
        return report

    async def initialize(self, force: bool = False) -> RefreshReport:
        """Bring the repository up to date with the index files and registry.

        Unavailable sources are reported, not raised; the next call retries
        them because their modification time was never recorded.
        """
        report = RefreshReport()
        try:
            report.parsed = self.refresh_indexes(force)
        except SourceUnavailableError as exc:
            log.warning("source_unavailable", source=exc.source, reason=exc.message)
            report.unavailable.append(exc)
        try:
            report.reconciled = await self.refresh_registry(force)
        except SourceUnavailableError as exc:
            log.warning("source_unavailable", source=exc.source, reason=exc.message)
            report.unavailable.append(exc)
        return report

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    def toggle_sort(self, column: SortColumn) -> SortPolicy:
        self.sort = self.sort.toggle(column)
        return self.sort

    def buckets(self, names: Iterable[str] | None = None) -> dict[Status, list[PackageRow]]:
        return build_buckets(self.repo, names, sort=self.sort, protected=self.protected)

    def outline(self) -> list[GroupHeader]:
        return build_outline(self.repo, sort=self.sort, protected=self.protected)

    def subgroup(self, ref: GroupRef) -> list[OutlineNode]:
        return compute_subgroup(self.repo, ref, sort=self.sort, protected=self.protected)

    # ------------------------------------------------------------------
    # Single package
    # ------------------------------------------------------------------

    async def package_details(self, name: str) -> PackageState:
        """Fill in ``dependents`` and ``space`` for one port from the registry."""
        if name not in self.repo and self.repo.state_of(name) is None:
            raise UnknownPackageError(name)

        state = self.repo.states.setdefault(name.casefold(), PackageState())
        details = await self.registry.fetch_details(name)
        if details is None:
            log.info("package_details_unavailable", name=name)
            return state

        state.dependents = details.dependents
        state.space = details.space
        return state

    def describe(self, name: str) -> PackageDescription:
        record = self.repo.get(name)
        if record is None:
            raise UnknownPackageError(name)

        state = self.repo.state_of(name)
        return PackageDescription(
            name=record.name,
            status=classify_package(record, state),
            version=candidate_version(record),
            installed=list(state.installed) if state else [],
            imaged=list(state.imaged) if state else [],
            categories=list(record.categories),
            attributes={attr: value.render() for attr, value in record.attributes.items()},
            links=package_links(record),
            dependents=state.dependents if state else None,
            space=state.space if state else None,
            builtin=record.key in self.protected,
        )
