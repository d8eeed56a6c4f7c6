"""
Output normalizer — converts a poll response's plan and structured output
into ``ResponseItem``s.

Order: plan first, then output. Items are built in full before the caller
emits any of them, so a malformed payload yields a single error item rather
than a partial stream.
"""

import logging
import time
from typing import Any, Optional

from pydantic import ValidationError

from devin_agent.errors import NormalizationError
from devin_agent.models.items import OutputFile, ResponseItem, assistant_item, system_item
from devin_agent.models.output import (
    AttachmentContent,
    CodeContent,
    ListContent,
    Plan,
    StructuredOutput,
    TableContent,
)
from devin_agent.models.session import SessionDetails
from devin_agent.policy import ApprovalPolicy

logger = logging.getLogger(__name__)

PLAN_PREFIXES = {
    "pending": "📋 **Plan Awaiting Approval**\n\n",
    "approved": "✅ **Plan Approved**\n\n",
    "rejected": "❌ **Plan Rejected**\n\n",
}
PLAN_APPROVAL_PROMPT = "Do you want to approve this plan? (Type 'yes' to approve or 'no' to reject)"
DEFAULT_MIME_TYPE = "application/octet-stream"


def _parse(model: Any, raw: Any, what: str) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise NormalizationError(f"Malformed {what}: {e.error_count()} validation errors") from e


def render_code(content: CodeContent) -> str:
    return f"```{content.language or ''}\n{content.code}\n```"


def render_table(content: TableContent) -> Optional[str]:
    """Pipe-delimited markdown table, or None when there are no headers."""
    if not content.headers:
        return None
    lines = [
        "| " + " | ".join(str(h) for h in content.headers) + " |",
        "| " + " | ".join("---" for _ in content.headers) + " |",
    ]
    for row in content.rows:
        lines.append("| " + " | ".join(str(cell) for cell in row) + " |")
    return "\n".join(lines)


def render_list(content: ListContent) -> Optional[str]:
    if not content.items:
        return None
    if content.ordered:
        lines = [f"{i}. {item}" for i, item in enumerate(content.items, start=1)]
    else:
        lines = [f"* {item}" for item in content.items]
    return "\n".join(lines)


def normalize_plan(raw_plan: Any, approval_policy: str) -> list[ResponseItem]:
    plan: Plan = _parse(Plan, raw_plan, "plan")
    prefix = PLAN_PREFIXES.get(plan.status, PLAN_PREFIXES["rejected"])
    items = [assistant_item(f"{prefix}{plan.content}", prefix="devin-plan")]
    if plan.status == "pending" and approval_policy == ApprovalPolicy.APPROVE_PLAN:
        items.append(system_item(PLAN_APPROVAL_PROMPT, prefix="devin-plan-approval"))
    return items


def normalize_entry(raw_entry: Any) -> Optional[ResponseItem]:
    entry: StructuredOutput = _parse(StructuredOutput, raw_entry, "output entry")

    if entry.type == "text":
        return assistant_item(str(entry.content))

    if entry.type == "code":
        return assistant_item(render_code(_parse(CodeContent, entry.content, "code output")))

    if entry.type == "table":
        text = render_table(_parse(TableContent, entry.content, "table output"))
        return assistant_item(text) if text is not None else None

    if entry.type == "list":
        text = render_list(_parse(ListContent, entry.content, "list output"))
        return assistant_item(text) if text is not None else None

    if entry.type == "attachment":
        attachment: AttachmentContent = _parse(AttachmentContent, entry.content, "attachment output")
        if not attachment.url:
            logger.debug("Skipping attachment output without a url")
            return None
        filename = attachment.filename or f"attachment-{int(time.time() * 1000)}"
        mime_type = attachment.mime_type or DEFAULT_MIME_TYPE
        logger.debug(f"Processing attachment {filename} ({mime_type})")
        return assistant_item(
            f"File: {filename}",
            OutputFile(file_url=attachment.url, filename=filename, mime_type=mime_type),
        )

    logger.debug(f"Ignoring unknown output type {entry.type!r}")
    return None


def normalize_session_output(details: SessionDetails, approval_policy: str) -> list[ResponseItem]:
    """Raises NormalizationError when the plan or an output entry is malformed."""
    items: list[ResponseItem] = []
    if details.plan:
        items.extend(normalize_plan(details.plan, approval_policy))

    output = details.output
    if isinstance(output, str):
        items.append(assistant_item(output))
    elif isinstance(output, list):
        for raw_entry in output:
            item = normalize_entry(raw_entry)
            if item is not None:
                items.append(item)
    elif output is not None:
        raise NormalizationError(f"Unsupported output payload of type {type(output).__name__}")
    return items
