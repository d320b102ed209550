"""Pre/post deployment actions engine."""

from .collaborators import Collaborators
from .factory import build_action_instance
from .loader import load_phase_actions
from .model import (
    ActionContext,
    ActionResult,
    ActionStatus,
    ActionType,
    DeclaredAction,
    Phase,
    PhaseKind,
    PullRequestRef,
    parse_declared_actions,
)
from .orchestrator import Orchestrator, PhaseReport, is_overall_failed
from .run_once import RunOnceStore

__all__ = [
    "ActionContext",
    "ActionResult",
    "ActionStatus",
    "ActionType",
    "Collaborators",
    "DeclaredAction",
    "Orchestrator",
    "Phase",
    "PhaseKind",
    "PhaseReport",
    "PullRequestRef",
    "RunOnceStore",
    "build_action_instance",
    "is_overall_failed",
    "load_phase_actions",
    "parse_declared_actions",
]
