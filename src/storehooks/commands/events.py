"""Events command -- list the fixed lifecycle event set."""

from __future__ import annotations

from storehooks.hooks import HookEvent, HookRegistry
from storehooks.operations import OPERATIONS
from storehooks.output import print_table


def _verbs_for(event: str) -> str:
    if event == HookEvent.ERROR:
        return "*"
    verbs = [name for name, op in OPERATIONS.items() if event in (op.before, op.after)]
    return ", ".join(verbs)


def events_command() -> None:
    """List every event a collection can trigger and the verbs that fire it.

    Example::

        storehooks events
        storehooks --json events
    """
    rows = [[event, _verbs_for(event)] for event in HookRegistry.events()]
    print_table(["Event", "Verbs"], rows, title="Lifecycle events")
