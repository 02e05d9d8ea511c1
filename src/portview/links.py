"""Resolve dependency tokens into link targets.

Port dependencies are written ``port:NAME``, ``bin:FILE:NAME``,
``lib:FILE:NAME`` or ``path:FILE:NAME``; the last field is always the port
that provides the dependency. Unrecognised tokens come back as plain text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from portview.models.outline import LinkTarget
from portview.models.package import NestedList, StringList, StringValue

if TYPE_CHECKING:
    from portview.models.package import AttributeValue, PackageRecord

log = structlog.get_logger()

DEPENDENCY_ATTRIBUTES = (
    "depends_fetch",
    "depends_extract",
    "depends_patch",
    "depends_build",
    "depends_lib",
    "depends_run",
    "depends_test",
)

_FILE_LINK_TYPES = frozenset({"bin", "lib", "path"})


def resolve_link(token: str) -> LinkTarget:
    link_type, sep, rest = token.partition(":")
    if sep:
        if link_type == "port" and rest:
            return LinkTarget(link_type="port", target=rest)
        if link_type in _FILE_LINK_TYPES:
            file_hint, sep, target = rest.rpartition(":")
            if sep and file_hint and target:
                return LinkTarget(link_type=link_type, file_hint=file_hint, target=target)
    log.debug("link_type_unknown", token=token)
    return LinkTarget(link_type="text", target=token)


def _tokens(value: AttributeValue) -> list[str]:
    if isinstance(value, StringValue):
        return [value.text]
    if isinstance(value, StringList):
        return list(value.items)
    if isinstance(value, NestedList):
        return [token for item in value.items for token in _tokens(item)]
    return []


def package_links(record: PackageRecord) -> dict[str, list[LinkTarget]]:
    """Links for every dependency attribute plus ``replaced_by``."""
    links: dict[str, list[LinkTarget]] = {}
    for attribute in DEPENDENCY_ATTRIBUTES:
        value = record.attributes.get(attribute)
        if value is not None:
            links[attribute] = [resolve_link(token) for token in _tokens(value)]

    replaced_by = record.attributes.get("replaced_by")
    if replaced_by is not None:
        links["replaced_by"] = [
            LinkTarget(link_type="port", target=name) for name in _tokens(replaced_by)
        ]
    return links
