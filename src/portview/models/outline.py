from __future__ import annotations

from enum import Enum, StrEnum
from typing import Literal

from pydantic import BaseModel, field_validator, model_validator


class Status(StrEnum):
    """Pseudo-group a package is displayed under, in display order."""

    OUTDATED = "Outdated"
    INACTIVE = "Inactive"
    INSTALLED = "Installed"
    NOT_INSTALLED = "Not-Installed"


class GroupLevel(int, Enum):
    ROOT = 0
    CATEGORY = 1
    CATEGORY_STATUS = 2
    LEAF = 3


class GroupRef(BaseModel):
    """Handle passed back to ``compute_subgroup`` to expand a header."""

    kind: Literal["status", "category", "category_status"]
    key: str
    status: Status | None = None

    @model_validator(mode="after")
    def validate_status(self) -> GroupRef:
        if self.kind != "category" and self.status is None:
            raise ValueError(f"a {self.kind} ref needs a status")
        return self


class GroupHeader(BaseModel):
    label: str
    member_count: int
    group_level: GroupLevel
    child_ref: GroupRef | None = None


class PackageRow(BaseModel):
    package_id: str
    display_version: str
    display_description: str
    builtin: bool = False


OutlineNode = GroupHeader | PackageRow


class Action(StrEnum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    UNINSTALL = "uninstall"
    UNINSTALL_INACTIVE = "uninstall-inactive"

    @property
    def removes(self) -> bool:
        return self in (Action.UNINSTALL, Action.UNINSTALL_INACTIVE)


class ActionRequest(BaseModel):
    """A batch handed to the external ``port`` runner."""

    action: Action
    names: list[str]

    @field_validator("names")
    @classmethod
    def validate_names(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("names must not be empty")
        return v


class LinkTarget(BaseModel):
    link_type: str  # "port" | "bin" | "lib" | "path" | "text"
    file_hint: str | None = None
    target: str


class PackageDescription(BaseModel):
    """Everything known about one port, rendered as plain text."""

    name: str
    status: Status
    version: str
    installed: list[str]
    imaged: list[str]
    categories: list[str]
    attributes: dict[str, str]
    links: dict[str, list[LinkTarget]]
    dependents: list[str] | None = None
    space: int | None = None
    builtin: bool = False
