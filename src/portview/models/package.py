from __future__ import annotations

import re
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from portview.errors import AttributeTypeError

_PREFIX_RE = re.compile(r"^([A-Za-z]+)-.")


class StringValue(BaseModel):
    """A bare token, e.g. ``version 1.2.3``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    text: str

    def render(self) -> str:
        return self.text


class StringList(BaseModel):
    """A brace list of plain tokens, e.g. ``categories {devel python}``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    items: tuple[str, ...] = ()

    def render(self) -> str:
        return " ".join(self.items)


class NestedList(BaseModel):
    """A brace list containing at least one brace list."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["nested"] = "nested"
    items: tuple[AttributeValue, ...] = ()

    def render(self) -> str:
        parts = []
        for item in self.items:
            text = item.render()
            parts.append(f"{{{text}}}" if isinstance(item, (StringList, NestedList)) else text)
        return " ".join(parts)


AttributeValue = Annotated[
    Union[StringValue, StringList, NestedList],
    Field(discriminator="kind"),
]

NestedList.model_rebuild()


def as_string(value: AttributeValue) -> str:
    if not isinstance(value, StringValue):
        raise AttributeTypeError("string", value.kind)
    return value.text


def as_list(value: AttributeValue) -> tuple[str, ...]:
    if not isinstance(value, StringList):
        raise AttributeTypeError("list", value.kind)
    return value.items


def as_nested(value: AttributeValue) -> tuple[AttributeValue, ...]:
    if not isinstance(value, NestedList):
        raise AttributeTypeError("nested", value.kind)
    return value.items


def members(value: AttributeValue) -> tuple[str, ...]:
    """Single-string memberships of a one-token or flat-list value."""
    if isinstance(value, StringValue):
        return (value.text,)
    if isinstance(value, StringList):
        return value.items
    raise AttributeTypeError("string or list", value.kind)


def name_prefix(name: str) -> str | None:
    """``py-numpy`` -> ``py``; names without a letters-hyphen head have none."""
    match = _PREFIX_RE.match(name)
    return match.group(1) if match else None


class PackageRecord(BaseModel):
    """All index attributes of one port. ``name`` keeps the index spelling."""

    name: str
    attributes: dict[str, AttributeValue] = {}

    @property
    def key(self) -> str:
        return self.name.casefold()

    def text(self, attribute: str, default: str = "") -> str:
        value = self.attributes.get(attribute)
        return value.render() if value is not None else default

    @property
    def version(self) -> str:
        return self.text("version")

    @property
    def revision(self) -> str:
        return self.text("revision")

    @property
    def epoch(self) -> str:
        return self.text("epoch")

    @property
    def variants(self) -> tuple[str, ...]:
        value = self.attributes.get("variants")
        return members(value) if value is not None else ()

    @property
    def negated_variants(self) -> tuple[str, ...]:
        value = self.attributes.get("negated_variants")
        return members(value) if value is not None else ()

    @property
    def description(self) -> str:
        return self.text("description")

    @property
    def long_description(self) -> str:
        return self.text("long_description")

    @property
    def categories(self) -> tuple[str, ...]:
        value = self.attributes.get("categories")
        return members(value) if value is not None else ()

    @property
    def prefix(self) -> str | None:
        return name_prefix(self.name)


class PackageState(BaseModel):
    """Locally observed install state of one port."""

    installed: list[str] = []
    imaged: list[str] = []
    # Filled on demand by a registry details query; None means "not fetched".
    dependents: list[str] | None = None
    space: int | None = None

    @property
    def empty(self) -> bool:
        return not self.installed and not self.imaged

    def add_installed(self, version: str) -> None:
        if version not in self.installed:
            self.installed.append(version)

    def add_imaged(self, version: str) -> None:
        if version not in self.imaged:
            self.imaged.append(version)
