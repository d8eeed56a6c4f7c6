"""
Sessions REST API — /sessions, /sessions/{id}/messages, /attachments.

Create, send-message and upload go through the retry policy. Status polling
and listing do not: the poller already calls ``get`` repeatedly.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from devin_agent.credentials import sanitize_error_message
from devin_agent.errors import DevinError
from devin_agent.models.session import SessionDetails, SessionSummary
from devin_agent.transport.http import HttpClient, Outcome
from devin_agent.transport.retry import RetryPolicy, with_retry
from devin_agent.transport.signal import AbortSignal

logger = logging.getLogger(__name__)

SPAWNED_BY = "devin-agent"


class SessionsAPI:
    def __init__(self, http: HttpClient, retry_policy: Optional[RetryPolicy] = None):
        self._http = http
        self._retry = retry_policy or RetryPolicy()

    async def create(
        self, prompt: str, effort_level: str, planning_mode: str, signal: Optional[AbortSignal] = None,
    ) -> str:
        """POST /sessions — returns the new session id."""
        body = {"prompt": prompt, "effort_level": effort_level, "planning_mode_agency": planning_mode}
        outcome = await with_retry(
            lambda: self._http.post("/sessions", body, signal=signal), self._retry, "create_session", signal,
        )
        data = self._unwrap("create_session", outcome)
        session_id = self._require_id("create_session", data)
        logger.debug(f"create_session: created {session_id} (effort={effort_level}, planning={planning_mode})")
        return session_id

    async def send_message(
        self,
        session_id: str,
        content: str,
        attachments: Optional[list[str]] = None,
        signal: Optional[AbortSignal] = None,
    ) -> None:
        """POST /sessions/{id}/messages"""
        body: dict[str, Any] = {"content": content}
        if attachments:
            body["attachments"] = list(attachments)
            logger.debug(f"send_message: attaching {len(attachments)} files")
        outcome = await with_retry(
            lambda: self._http.post(f"/sessions/{session_id}/messages", body, signal=signal),
            self._retry, "send_message", signal,
        )
        self._unwrap("send_message", outcome)
        logger.debug(f"send_message: sent to {session_id}")

    async def get(self, session_id: str, signal: Optional[AbortSignal] = None) -> SessionDetails:
        """GET /sessions/{id}"""
        data = self._unwrap("get_session", await self._http.get(f"/sessions/{session_id}", signal=signal))
        try:
            return SessionDetails.model_validate(data)
        except ValidationError as e:
            raise DevinError("invalid_response", f"Unexpected session payload: {e.error_count()} errors") from e

    async def list(self, signal: Optional[AbortSignal] = None) -> list[SessionSummary]:
        """GET /sessions"""
        data = self._unwrap("list_sessions", await self._http.get("/sessions", signal=signal))
        raw = data.get("sessions") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return []
        try:
            sessions = [SessionSummary.model_validate(s) for s in raw]
        except ValidationError as e:
            raise DevinError("invalid_response", f"Unexpected session list payload: {e.error_count()} errors") from e
        logger.debug(f"list_sessions: found {len(sessions)} sessions")
        return sessions

    async def create_recursive(
        self, prompt: str, parent_session_id: Optional[str] = None, signal: Optional[AbortSignal] = None,
    ) -> str:
        """POST /sessions tagged as spawned by automation."""
        metadata: dict[str, Any] = {"is_recursive": True, "spawned_by": SPAWNED_BY}
        if parent_session_id:
            metadata["parent_session_id"] = parent_session_id
        body = {"prompt": prompt, "effort_level": "standard", "metadata": metadata}
        data = self._unwrap("create_recursive_session", await self._http.post("/sessions", body, signal=signal))
        session_id = self._require_id("create_recursive_session", data)
        logger.debug(f"create_recursive_session: created {session_id} (parent={parent_session_id})")
        return session_id

    async def upload_attachment(
        self, filename: str, content: bytes, mime_type: str, signal: Optional[AbortSignal] = None,
    ) -> str:
        """POST /attachments — multipart upload, returns the file URL."""
        outcome = await with_retry(
            lambda: self._http.upload("/attachments", filename, content, mime_type, signal=signal),
            self._retry, "upload_file", signal,
        )
        data = self._unwrap("upload_file", outcome)
        url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            raise DevinError("invalid_response", "Upload response did not include a file URL")
        logger.debug(f"upload_file: uploaded {filename} ({mime_type}) -> {url}")
        return url

    @staticmethod
    def _unwrap(operation: str, outcome: Outcome) -> Any:
        if outcome.kind == Outcome.ABORTED:
            logger.debug(f"{operation} aborted")
        elif not outcome.ok:
            logger.warning(f"{operation} failed [{outcome.kind}]: {sanitize_error_message(outcome.error)}")
        return outcome.unwrap()

    @staticmethod
    def _require_id(operation: str, data: Any) -> str:
        session_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(session_id, str) or not session_id:
            raise DevinError("invalid_response", f"{operation}: response did not include a session id")
        return session_id
