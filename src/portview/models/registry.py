from __future__ import annotations

from pydantic import BaseModel


class RegistryRow(BaseModel):
    """One row of the ``ports`` table: name|epoch|version|revision|state|variants."""

    name: str
    epoch: str = ""
    version: str
    revision: str = ""
    state: str
    variants: str = ""


class PackageDetails(BaseModel):
    """On-demand registry facts about a single port."""

    name: str
    dependents: list[str] = []
    space: int = 0  # bytes on disk of the port's registered files
