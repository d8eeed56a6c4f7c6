"""
Approval policies, effort levels and Devin model names.
"""

from typing import Any


class ApprovalPolicy:
    SUGGEST = "suggest"
    AUTO_EDIT = "auto-edit"
    FULL_AUTO = "full-auto"
    APPROVE_PLAN = "approve-plan"  # Devin planning_mode_agency=sync_confirm

    ALL = (SUGGEST, AUTO_EDIT, FULL_AUTO, APPROVE_PLAN)


class EffortLevel:
    STANDARD = "standard"
    DEEP = "deep"


class PlanningMode:
    AUTO_CONFIRM = "auto_confirm"
    SYNC_CONFIRM = "sync_confirm"


class SessionStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_MODEL = "devin-standard"
DEVIN_MODELS = ["devin-standard", "devin-deep"]


def is_devin_model(model: Any) -> bool:
    if not isinstance(model, str) or not model.strip():
        return False
    return model.startswith("devin-")


def is_devin_model_supported(model: Any) -> bool:
    if not isinstance(model, str) or not model.strip():
        return False
    return model.strip() in DEVIN_MODELS


def effort_level_for_model(model: str) -> str:
    return EffortLevel.DEEP if (model or DEFAULT_MODEL).endswith("-deep") else EffortLevel.STANDARD


def planning_mode_for_policy(approval_policy: str) -> str:
    if approval_policy == ApprovalPolicy.APPROVE_PLAN:
        return PlanningMode.SYNC_CONFIRM
    return PlanningMode.AUTO_CONFIRM
