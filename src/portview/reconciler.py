"""Merge install-registry rows into repository state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from portview.models.package import PackageState
from portview.models.registry import RegistryRow

if TYPE_CHECKING:
    from collections.abc import Iterable

    from portview.repository import Repository

log = structlog.get_logger()

_REGISTRY_FIELDS = ("name", "epoch", "version", "revision", "state", "variants")


@dataclass
class ReconcileReport:
    applied: int = 0
    ignored: int = 0
    cleared: int = 0


def combined_version(row: RegistryRow) -> str:
    """``version[_revision][;epoch][variants]``, empty and zero parts omitted."""
    text = row.version
    if row.revision and row.revision != "0":
        text += f"_{row.revision}"
    if row.epoch and row.epoch != "0":
        text += f";{row.epoch}"
    return text + row.variants


def parse_registry_output(text: str) -> list[RegistryRow]:
    """Parse ``name|epoch|version|revision|state|variants`` lines."""
    rows: list[RegistryRow] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split("|")
        if len(fields) != len(_REGISTRY_FIELDS):
            log.warning("registry_row_malformed", line=lineno, fields=len(fields))
            continue
        rows.append(RegistryRow(**dict(zip(_REGISTRY_FIELDS, fields))))
    return rows


def reconcile(
    repo: Repository,
    rows: Iterable[RegistryRow],
    installed_states: Iterable[str] = ("installed",),
    imaged_states: Iterable[str] = ("imaged",),
) -> ReconcileReport:
    """Replace all install state in ``repo`` with what ``rows`` describe.

    Every package that held state from the previous pass is cleared first, so
    a port missing from ``rows`` ends up with no state at all.
    """
    installed_flags = frozenset(installed_states)
    imaged_flags = frozenset(imaged_states)
    report = ReconcileReport(cleared=len(repo.states))

    states: dict[str, PackageState] = {}
    for row in rows:
        if row.state in installed_flags:
            states.setdefault(row.name.casefold(), PackageState()).add_installed(
                combined_version(row)
            )
        elif row.state in imaged_flags:
            states.setdefault(row.name.casefold(), PackageState()).add_imaged(
                combined_version(row)
            )
        else:
            report.ignored += 1
            log.debug("registry_state_unrecognised", name=row.name, state=row.state)
            continue
        report.applied += 1

    repo.states = states
    log.info(
        "registry_reconciled",
        applied=report.applied,
        ignored=report.ignored,
        cleared=report.cleared,
        stateful=len(states),
    )
    return report
