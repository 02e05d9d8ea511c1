"""Per-row marks and the action batches built from them.

Nothing here runs ``port``; the batches are handed to whoever does.
"""

from __future__ import annotations

import structlog

from portview.errors import ProtectedPackageError
from portview.models.outline import Action, ActionRequest

log = structlog.get_logger()


class ActionMarks:
    """User marks collected while browsing, keyed by casefolded name."""

    def __init__(self, protected: frozenset[str] = frozenset()) -> None:
        self._protected = protected
        self._marks: dict[str, tuple[str, Action]] = {}

    def mark(self, name: str, action: Action) -> None:
        """Mark ``name``; a protected name can't be marked for removal."""
        if action.removes and name.casefold() in self._protected:
            log.info("protected_package_rejected", name=name, action=action.value)
            raise ProtectedPackageError([name])
        self._marks[name.casefold()] = (name, action)

    def unmark(self, name: str) -> None:
        self._marks.pop(name.casefold(), None)

    def clear(self) -> None:
        self._marks.clear()

    def marked(self, action: Action | None = None) -> list[str]:
        return [name for name, act in self._marks.values() if action is None or act is action]

    def action_for(self, name: str) -> Action | None:
        entry = self._marks.get(name.casefold())
        return entry[1] if entry else None

    def __len__(self) -> int:
        return len(self._marks)

    def plan(self) -> list[ActionRequest]:
        return plan_actions(dict(self._marks.values()), self._protected)


def plan_actions(
    marks: dict[str, Action],
    protected: frozenset[str] = frozenset(),
) -> list[ActionRequest]:
    """One request per action that has names, in ``Action`` order.

    Raises:
        ProtectedPackageError: some removal names a protected package. Raised
            before any request is built, so the batch is rejected whole.
    """
    rejected = sorted(
        name for name, action in marks.items() if action.removes and name.casefold() in protected
    )
    if rejected:
        raise ProtectedPackageError(rejected)

    requests = []
    for action in Action:
        names = sorted((name for name, act in marks.items() if act is action), key=str.casefold)
        if names:
            requests.append(ActionRequest(action=action, names=names))
    log.debug("actions_planned", batches=len(requests), marks=len(marks))
    return requests
