"""
Structured output payloads — GET /sessions/{id} ``output`` and ``plan``.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class Plan(BaseModel):
    content: str = ""
    status: str = "pending"  # pending | approved | rejected


class StructuredOutput(BaseModel):
    """One typed entry: text | code | table | list | attachment."""
    type: str
    content: Any = None


class CodeContent(BaseModel):
    code: str = ""
    language: Optional[str] = None


class TableContent(BaseModel):
    headers: Optional[list[Any]] = None
    rows: list[list[Any]] = Field(default_factory=list)


class ListContent(BaseModel):
    items: list[Any] = Field(default_factory=list)
    ordered: bool = False


class AttachmentContent(BaseModel):
    url: Optional[str] = None
    filename: Optional[str] = None
    mime_type: Optional[str] = None
