"""Map a declared action type to its variant."""

from __future__ import annotations

from typing import Any

from rel.core.result import Err, Ok, Result

from .collaborators import Collaborators
from .model import ActionResult, ActionType, DeclaredAction
from .variants import (
    ActionVariant,
    CommandAction,
    DataImportAction,
    ManualAction,
    PublishContentAction,
    ScriptAction,
)

__all__ = ["VARIANTS", "build_action_instance"]

VARIANTS: dict[ActionType, type[ActionVariant[Any]]] = {
    ActionType.COMMAND: CommandAction,
    ActionType.SCRIPT: ScriptAction,
    ActionType.DATA_IMPORT: DataImportAction,
    ActionType.PUBLISH_CONTENT: PublishContentAction,
    ActionType.MANUAL: ManualAction,
}


def build_action_instance(
    action: DeclaredAction,
    collaborators: Collaborators,
    *,
    target: str | None = None,
) -> Result[ActionVariant[Any], ActionResult]:
    """Return the variant for ``action.type_name``.

    An unknown type is not an exception: it yields Err with the failed
    result the caller attaches to the action instead of running it.
    """
    action_type = action.action_type
    if action_type is None:
        return Err(ActionResult.failed(f"Action type [{action.type_name}] is not implemented"))
    return Ok(VARIANTS[action_type](collaborators, target))
