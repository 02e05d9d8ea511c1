"""Prefix-limited version comparison.

Installed registry strings look like ``2.0_1;1+universal``: they carry the
revision, epoch and variants after the upstream version. The index side only
knows ``2.0_1``, so an installed string is compared over the length of the
index string and anything past it is ignored.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from portview.models.package import PackageRecord


class VersionMatch(Enum):
    EXACT = "exact"
    NEWER = "newer"
    OLDER = "older"
    ABSENT = "absent"


def compare_one(candidate: str, installed: str) -> VersionMatch:
    """Compare one installed string against ``candidate``, case-insensitively.

    A shorter installed string sorts before the candidate, as with strncasecmp.
    """
    want = candidate.lower().encode()
    have = installed.lower().encode()[: len(want)]
    if have == want:
        return VersionMatch.EXACT
    return VersionMatch.NEWER if have > want else VersionMatch.OLDER


def classify(candidate: str, installed_versions: Iterable[str]) -> VersionMatch:
    """Aggregate over all installed strings: Exact > Newer > Older; none is Absent."""
    seen: set[VersionMatch] = set()
    for installed in installed_versions:
        match = compare_one(candidate, installed)
        if match is VersionMatch.EXACT:
            return match
        seen.add(match)
    if VersionMatch.NEWER in seen:
        return VersionMatch.NEWER
    if VersionMatch.OLDER in seen:
        return VersionMatch.OLDER
    return VersionMatch.ABSENT


def candidate_version(record: PackageRecord) -> str:
    """``version[_revision]`` as the index advertises it."""
    revision = record.revision
    if revision and revision != "0":
        return f"{record.version}_{revision}"
    return record.version
