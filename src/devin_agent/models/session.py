"""
Session models — GET /sessions and GET /sessions/{id}.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class SessionDetails(BaseModel):
    """GET /sessions/{id}

    ``output`` and ``plan`` stay loosely typed here; the output normalizer
    validates them so a malformed payload surfaces as an item, not a poll error.
    """
    id: str = ""
    status: str = ""
    title: Optional[str] = None
    output: Optional[Any] = None
    error: Optional[Any] = None
    plan: Optional[Any] = None


class SessionSummary(BaseModel):
    """GET /sessions entry. The service names the id ``session_id``."""
    id: str = Field(alias="session_id")
    status: Optional[str] = None
    title: Optional[str] = None

    model_config = {"populate_by_name": True}


class SessionEntry(BaseModel):
    """Session registry value."""
    status: str
    title: str
