"""Status classification and outline grouping.

The outline has four levels::

    0  Outdated / Inactive / Installed / Not-Installed / Categorized
    1      <category>                     (under Categorized)
    2          <status within category>
    3              <package row>

Headers carry a ``GroupRef``; their children are produced on demand by
``compute_subgroup`` so a renderer only pays for what the user expands.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from functools import cmp_to_key
from typing import TYPE_CHECKING

import structlog

from portview.models.outline import (
    GroupHeader,
    GroupLevel,
    GroupRef,
    OutlineNode,
    PackageRow,
    Status,
)
from portview.versions import VersionMatch, candidate_version, classify

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from portview.models.package import PackageRecord, PackageState
    from portview.repository import Repository

log = structlog.get_logger()

CATEGORIZED_LABEL = "Categorized"


def classify_package(record: PackageRecord, state: PackageState | None) -> Status:
    """Bucket for one port. Any imaged version makes it Inactive."""
    if state is None or state.empty:
        return Status.NOT_INSTALLED

    if state.imaged:
        return Status.INACTIVE

    match = classify(candidate_version(record), state.installed)
    if match in (VersionMatch.EXACT, VersionMatch.NEWER):
        return Status.INSTALLED
    if match is VersionMatch.OLDER:
        return Status.OUTDATED
    return Status.NOT_INSTALLED


# ----------------------------------------------------------------------
# Sorting
# ----------------------------------------------------------------------


class SortColumn(StrEnum):
    NAME = "name"
    VERSION = "version"
    DESCRIPTION = "description"


def compare_text(a: str, b: str) -> int:
    a, b = a.casefold(), b.casefold()
    return (a > b) - (a < b)


@dataclass(frozen=True)
class SortKey:
    selector: Callable[[PackageRow], str]
    compare: Callable[[str, str], int] = compare_text


SORT_KEYS: dict[SortColumn, SortKey] = {
    SortColumn.NAME: SortKey(lambda row: row.package_id),
    SortColumn.VERSION: SortKey(lambda row: row.display_version),
    SortColumn.DESCRIPTION: SortKey(lambda row: row.display_description),
}


@dataclass(frozen=True)
class SortPolicy:
    """The one sort order applied to every bucket and subgroup."""

    column: SortColumn = SortColumn.NAME
    descending: bool = False

    def toggle(self, column: SortColumn) -> SortPolicy:
        """Same column flips direction; a new column starts ascending."""
        if column == self.column:
            return replace(self, descending=not self.descending)
        return SortPolicy(column=column)

    def apply(self, rows: Iterable[PackageRow]) -> list[PackageRow]:
        key = SORT_KEYS[self.column]
        # Name first so equal keys keep a deterministic order.
        ordered = sorted(rows, key=lambda row: row.package_id.casefold())
        ordered.sort(key=cmp_to_key(lambda a, b: key.compare(key.selector(a), key.selector(b))))
        if self.descending:
            ordered.reverse()
        return ordered


# ----------------------------------------------------------------------
# Buckets
# ----------------------------------------------------------------------


def make_row(record: PackageRecord, protected: frozenset[str] = frozenset()) -> PackageRow:
    return PackageRow(
        package_id=record.name,
        display_version=candidate_version(record),
        display_description=record.description,
        builtin=record.key in protected,
    )


def build_buckets(
    repo: Repository,
    names: Iterable[str] | None = None,
    sort: SortPolicy = SortPolicy(),
    protected: frozenset[str] = frozenset(),
) -> dict[Status, list[PackageRow]]:
    """Sorted rows per status for ``names`` (default: every known port).

    Names the index doesn't know are ignored.
    """
    unsorted: dict[Status, list[PackageRow]] = {status: [] for status in Status}
    keys = repo.packages.keys() if names is None else (name.casefold() for name in names)
    for key in keys:
        record = repo.packages.get(key)
        if record is None:
            log.debug("grouping_unknown_package", name=key)
            continue
        status = classify_package(record, repo.states.get(key))
        unsorted[status].append(make_row(record, protected))
    return {status: sort.apply(rows) for status, rows in unsorted.items()}


def _status_headers(
    buckets: dict[Status, list[PackageRow]],
    level: GroupLevel,
    kind: str,
    key: str | None = None,
) -> list[GroupHeader]:
    return [
        GroupHeader(
            label=status.value,
            member_count=len(rows),
            group_level=level,
            child_ref=GroupRef(kind=kind, key=key or status.value, status=status),
        )
        for status, rows in buckets.items()
    ]


def build_outline(
    repo: Repository,
    sort: SortPolicy = SortPolicy(),
    protected: frozenset[str] = frozenset(),
) -> list[GroupHeader]:
    """Top two levels of the outline; no package rows are materialized."""
    buckets = build_buckets(repo, sort=sort, protected=protected)
    nodes = _status_headers(buckets, GroupLevel.ROOT, "status")
    nodes.append(
        GroupHeader(
            label=CATEGORIZED_LABEL,
            member_count=len(buckets[Status.NOT_INSTALLED]) + len(buckets[Status.INSTALLED]),
            group_level=GroupLevel.ROOT,
        )
    )
    for category in repo.category_names():
        nodes.append(
            GroupHeader(
                label=category,
                member_count=len(repo.categories[category]),
                group_level=GroupLevel.CATEGORY,
                child_ref=GroupRef(kind="category", key=category),
            )
        )
    return nodes


def compute_subgroup(
    repo: Repository,
    ref: GroupRef,
    sort: SortPolicy = SortPolicy(),
    protected: frozenset[str] = frozenset(),
) -> list[OutlineNode]:
    """Children of the header that carries ``ref``.

    A category expands to its four status headers, each followed by its rows.
    """
    # GroupRef guarantees ``status`` is set for every kind but "category".
    if ref.kind == "status":
        buckets = build_buckets(repo, sort=sort, protected=protected)
        return list(buckets[ref.status])  # type: ignore[index]

    members = repo.category_members(ref.key)
    buckets = build_buckets(repo, members, sort=sort, protected=protected)
    if ref.kind == "category_status":
        return list(buckets[ref.status])  # type: ignore[index]

    nodes: list[OutlineNode] = []
    headers = _status_headers(buckets, GroupLevel.CATEGORY_STATUS, "category_status", ref.key)
    for header, rows in zip(headers, buckets.values()):
        nodes.append(header)
        nodes.extend(rows)
    return nodes
