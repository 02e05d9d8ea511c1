"""Unit tests for portview.actions."""

from __future__ import annotations

import pytest

from portview.actions import ActionMarks, plan_actions
from portview.errors import ErrorCode, ProtectedPackageError
from portview.models.outline import Action, ActionRequest

PROTECTED = frozenset({"macports"})


class TestPlanActions:
    def test_groups_by_action_in_fixed_order(self) -> None:
        requests = plan_actions(
            {
                "zlib": Action.UNINSTALL,
                "curl": Action.INSTALL,
                "gettext": Action.UNINSTALL_INACTIVE,
                "py312-numpy": Action.UPGRADE,
                "Bzip2": Action.INSTALL,
            }
        )
        assert requests == [
            ActionRequest(action=Action.INSTALL, names=["Bzip2", "curl"]),
            ActionRequest(action=Action.UPGRADE, names=["py312-numpy"]),
            ActionRequest(action=Action.UNINSTALL, names=["zlib"]),
            ActionRequest(action=Action.UNINSTALL_INACTIVE, names=["gettext"]),
        ]

    def test_empty(self) -> None:
        assert plan_actions({}) == []

    def test_protected_uninstall_rejects_whole_batch(self) -> None:
        with pytest.raises(ProtectedPackageError) as excinfo:
            plan_actions({"MacPorts": Action.UNINSTALL, "zlib": Action.UNINSTALL}, PROTECTED)
        assert excinfo.value.names == ["MacPorts"]
        assert excinfo.value.code is ErrorCode.PROTECTED_PACKAGE

    def test_protected_uninstall_inactive_rejected(self) -> None:
        with pytest.raises(ProtectedPackageError):
            plan_actions({"macports": Action.UNINSTALL_INACTIVE}, PROTECTED)

    def test_protected_upgrade_allowed(self) -> None:
        requests = plan_actions({"MacPorts": Action.UPGRADE}, PROTECTED)
        assert requests == [ActionRequest(action=Action.UPGRADE, names=["MacPorts"])]


class TestActionMarks:
    def test_mark_and_plan(self) -> None:
        marks = ActionMarks(PROTECTED)
        marks.mark("zlib", Action.UNINSTALL)
        marks.mark("curl", Action.INSTALL)
        assert len(marks) == 2
        assert marks.action_for("ZLIB") is Action.UNINSTALL
        assert [r.action for r in marks.plan()] == [Action.INSTALL, Action.UNINSTALL]

    def test_remark_replaces(self) -> None:
        marks = ActionMarks()
        marks.mark("zlib", Action.UNINSTALL)
        marks.mark("zlib", Action.UPGRADE)
        assert marks.marked() == ["zlib"]
        assert marks.marked(Action.UNINSTALL) == []

    def test_unmark_and_clear(self) -> None:
        marks = ActionMarks()
        marks.mark("a", Action.INSTALL)
        marks.mark("b", Action.INSTALL)
        marks.unmark("A")
        assert marks.marked() == ["b"]
        marks.clear()
        assert marks.plan() == []

    def test_protected_mark_rejected_others_kept(self) -> None:
        marks = ActionMarks(PROTECTED)
        marks.mark("zlib", Action.UNINSTALL)
        with pytest.raises(ProtectedPackageError):
            marks.mark("MacPorts", Action.UNINSTALL)
        requests = marks.plan()
        assert requests == [ActionRequest(action=Action.UNINSTALL, names=["zlib"])]
        assert all("MacPorts" not in r.names for r in requests)

    def test_protected_install_allowed(self) -> None:
        marks = ActionMarks(PROTECTED)
        marks.mark("MacPorts", Action.INSTALL)
        assert marks.marked(Action.INSTALL) == ["MacPorts"]


class TestActionRequest:
    def test_names_required(self) -> None:
        with pytest.raises(ValueError):
            ActionRequest(action=Action.INSTALL, names=[])
