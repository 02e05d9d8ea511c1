"""Shared fixtures: a small PortIndex and the matching registry rows."""

from __future__ import annotations

import pytest

from portview.index_parser import parse_index
from portview.models.registry import RegistryRow
from portview.reconciler import reconcile
from portview.repository import Repository


def index_entry(name: str, body: str) -> bytes:
    """One PortIndex entry with a correct byte-length header."""
    data = (body + "\n").encode("utf-8")
    return f"{name} {len(data)}\n".encode() + data


SAMPLE_ENTRIES = [
    index_entry(
        "zlib",
        "categories archivers description {Lossless data-compression library} "
        "name zlib platforms darwin portdir archivers/zlib revision 0 version 1.3.1",
    ),
    index_entry(
        "py312-numpy",
        "categories {python math} depends_build port:pkgconfig "
        "depends_lib {port:python312 lib:libopenblas:OpenBLAS} "
        "description {The core utility for scientific computing} "
        "name py312-numpy revision 1 subports {} version 1.26.4",
    ),
    index_entry(
        "gettext",
        "categories devel description {GNU internationalization library} "
        "name gettext revision 0 version 0.22.5",
    ),
    index_entry(
        "curl",
        "categories {net www} description {Tool for transferring files with URL syntax} "
        "name curl revision 0 variants {brotli http3 ssl} version 8.7.1",
    ),
    index_entry(
        "MacPorts",
        "categories sysutils description {The MacPorts Project base system} "
        "name MacPorts revision 0 version 2.9.3",
    ),
]

SAMPLE_ROWS = [
    RegistryRow(
        name="zlib", epoch="0", version="1.3.1", revision="0",
        state="installed", variants="+universal",
    ),
    RegistryRow(name="py312-numpy", epoch="0", version="1.26.3", revision="0", state="installed"),
    RegistryRow(name="gettext", epoch="0", version="0.22.5", revision="0", state="imaged"),
    RegistryRow(name="MacPorts", epoch="0", version="2.9.3", revision="0", state="installed"),
]


@pytest.fixture()
def sample_index() -> bytes:
    return b"".join(SAMPLE_ENTRIES)


@pytest.fixture()
def sample_rows() -> list[RegistryRow]:
    return list(SAMPLE_ROWS)


@pytest.fixture()
def repo(sample_index: bytes, sample_rows: list[RegistryRow]) -> Repository:
    """Repository parsed from the sample index and reconciled with the sample rows."""
    r = Repository()
    parse_index(r, sample_index)
    reconcile(r, sample_rows)
    return r


@pytest.fixture()
def make_entry():
    """Factory for single index entries: ``make_entry(name, body) -> bytes``."""
    return index_entry
