from __future__ import annotations

from portview.models.outline import (
    Action,
    ActionRequest,
    GroupHeader,
    GroupLevel,
    GroupRef,
    LinkTarget,
    OutlineNode,
    PackageDescription,
    PackageRow,
    Status,
)
from portview.models.package import (
    AttributeValue,
    NestedList,
    PackageRecord,
    PackageState,
    StringList,
    StringValue,
)
from portview.models.registry import PackageDetails, RegistryRow

__all__ = [
    # package
    "AttributeValue",
    "StringValue",
    "StringList",
    "NestedList",
    "PackageRecord",
    "PackageState",
    # registry
    "RegistryRow",
    "PackageDetails",
    # outline
    "Status",
    "GroupLevel",
    "GroupRef",
    "GroupHeader",
    "PackageRow",
    "OutlineNode",
    "Action",
    "ActionRequest",
    "LinkTarget",
    "PackageDescription",
]
