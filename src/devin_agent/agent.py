"""
DevinAgent — client-side adapter that bridges a stateless CLI invocation to a
stateful remote Devin session.

Lifecycle of one run:

    Idle -> Starting -> Polling -> {Completed | Failed | Canceled}

``run()`` may be called at any time and supersedes whatever came before it.
Superseding is tracked by a generation counter: ``run()`` and ``cancel()``
bump it before their first suspension point, and every piece of in-flight
work compares its captured generation with the live one before it emits
anything. Together with the abort signal threaded through every HTTP call,
this keeps a stale poller from injecting output into a newer run.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

from devin_agent.attachments import extract_attachments, guess_mime_type
from devin_agent.config import AppConfig
from devin_agent.credentials import mask_for_logging, sanitize_error_message, validate_api_key
from devin_agent.errors import AgentTerminated, InvalidCredential, RequestAborted
from devin_agent.models.items import ResponseItem, system_item
from devin_agent.models.session import SessionDetails, SessionEntry, SessionSummary
from devin_agent.normalize import normalize_session_output
from devin_agent.paths import path_basename
from devin_agent.policy import SessionStatus, effort_level_for_model, planning_mode_for_policy
from devin_agent.registry import SessionRegistry, title_from_prompt
from devin_agent.sessions import SessionsAPI
from devin_agent.transport.http import HttpClient
from devin_agent.transport.retry import RetryPolicy
from devin_agent.transport.signal import AbortSignal

logger = logging.getLogger(__name__)

PRESENT_ATTACHMENTS_MESSAGE = "Here are the files related to my request:"

CommandConfirmation = Callable[[list[str], Optional[Any]], Awaitable[Any]]


def format_input(input_items: Iterable[dict[str, Any]]) -> str:
    """Prompt text from user messages: text parts joined, messages newline-joined."""
    messages: list[str] = []
    for item in input_items:
        if item.get("type") != "message" or item.get("role") != "user":
            continue
        content = item.get("content")
        if isinstance(content, str):
            messages.append(content)
        elif isinstance(content, list):
            messages.append("".join(
                str(part.get("text", ""))
                for part in content
                if isinstance(part, dict) and part.get("type") == "input_text"
            ))
    return "\n".join(messages)


def user_message(text: str, attachments: Iterable[str] = ()) -> dict[str, Any]:
    """Build a user input item; ``attachments`` become ``input_file`` parts."""
    content: list[dict[str, Any]] = [{"type": "input_text", "text": text}]
    content.extend({"type": "input_file", "file_url": url} for url in attachments)
    return {"type": "message", "role": "user", "content": content}


class DevinAgent:
    def __init__(
        self,
        api_key: str,
        approval_policy: str,
        config: AppConfig,
        on_item: Callable[[ResponseItem], None],
        on_loading: Callable[[bool], None],
        on_last_response_id: Callable[[str], None],
        get_command_confirmation: Optional[CommandConfirmation] = None,
        *,
        sessions: Optional[SessionsAPI] = None,
        http: Optional[HttpClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        poll_interval: Optional[float] = None,
    ):
        if not validate_api_key(api_key):
            raise InvalidCredential()

        self._approval_policy = approval_policy
        self._config = config
        self._on_item = on_item
        self._on_loading = on_loading
        self._on_last_response_id = on_last_response_id
        # Same shape as the OpenAI agent loop's callback; Devin runs never ask for it.
        self._get_command_confirmation = get_command_confirmation

        self._owns_http = sessions is None and http is None
        if sessions is None:
            http = http or HttpClient(api_key, base_url=config.base_url)
            sessions = SessionsAPI(http, retry_policy)
        self._http = http
        self._sessions = sessions
        self._poll_interval = config.poll_interval if poll_interval is None else poll_interval

        self._registry = SessionRegistry()
        self._session_id: Optional[str] = None
        self._generation = 0
        self._terminated = False
        self._poll_task: Optional[asyncio.Task] = None

        self._hard_abort = AbortSignal()
        self._signal = self._new_signal()
        self._hard_abort.add_listener(lambda: self._signal.abort())

        logger.debug(f"DevinAgent initialized with model: {config.model}, API key: {mask_for_logging(api_key)}")

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def terminated(self) -> bool:
        return self._terminated

    async def run(
        self,
        input_items: list[dict[str, Any]],
        previous_session_id: Optional[str] = None,
        attachments: Optional[list[str]] = None,
    ) -> None:
        """Start (or continue) a session and begin polling it.

        Failures are reported as system items through ``on_item``; only
        ``AgentTerminated`` is raised.
        """
        if self._terminated:
            raise AgentTerminated()

        self._generation += 1
        generation = self._generation
        self._stop_polling()
        self._signal = self._new_signal()
        signal = self._signal
        self._session_id = previous_session_id or None
        self._on_loading(True)

        try:
            prompt = format_input(input_items)
            effort_level = effort_level_for_model(self._config.model)
            planning_mode = planning_mode_for_policy(self._approval_policy)
            all_attachments = [*(attachments or []), *extract_attachments(input_items)]
            logger.debug(
                f"run(): generation={generation} effort={effort_level} planning_mode_agency={planning_mode} "
                f"attachments={len(all_attachments)}"
            )

            session_id = self._session_id
            if session_id:
                await self._sessions.send_message(session_id, prompt, all_attachments or None, signal=signal)
            else:
                session_id = await self._sessions.create(prompt, effort_level, planning_mode, signal=signal)
                if generation != self._generation:
                    logger.debug(f"run(): generation {generation} superseded after creating {session_id}")
                    return
                self._session_id = session_id
                self._on_last_response_id(session_id)
                if all_attachments:
                    await self._sessions.send_message(
                        session_id, PRESENT_ATTACHMENTS_MESSAGE, all_attachments, signal=signal,
                    )
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"run(): generation {generation} superseded: {sanitize_error_message(e)}")
                return
            message = sanitize_error_message(e)
            logger.error(f"run(): {message}")
            self._emit(system_item(f"Error communicating with Devin AI: {message}"))
            self._on_loading(False)
            return

        if generation != self._generation:
            logger.debug(f"run(): generation {generation} superseded before polling")
            return
        self._emit(system_item(f"Processing request with Devin AI ({effort_level} effort)...", prefix="devin"))
        self._start_polling(session_id, generation)

    def cancel(self) -> None:
        if self._terminated:
            return
        self._cancel()

    def terminate(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        self._hard_abort.abort()
        self._cancel()
        self._stop_polling()

    async def wait(self) -> None:
        """Wait until the current poller, if any, stops."""
        task = self._poll_task
        if task is not None:
            await asyncio.wait({task})

    async def upload_file(
        self,
        path: str,
        content: Union[bytes, str],
        present_to_agent: bool = True,
        session_id: Optional[str] = None,
    ) -> str:
        """Upload ``content`` under the basename of ``path``; returns the file URL.

        When ``present_to_agent`` is set and a session exists (``session_id`` or
        the current one), the file is sent to it right away. Without a session
        the caller should pass the URL to the next ``run()`` instead.
        """
        if self._terminated:
            raise AgentTerminated()
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        filename = path_basename(path) or "file"
        mime_type = guess_mime_type(filename, data)
        url = await self._sessions.upload_attachment(filename, data, mime_type, signal=self._signal)

        target = session_id or self._session_id
        if present_to_agent and target:
            await self._present_file(target, url, filename)
        return url

    async def list_sessions(self) -> list[SessionSummary]:
        if self._terminated:
            raise AgentTerminated()
        sessions = await self._sessions.list(signal=self._signal)
        for session in sessions:
            self._registry.record(session.id, session.status or "", session.title or "")
        return sessions

    def get_active_sessions(self) -> dict[str, SessionEntry]:
        return self._registry.entries

    async def create_recursive_session(self, prompt: str, parent_id: Optional[str] = None) -> str:
        """Create a session tagged as spawned by automation; not polled by this agent."""
        if self._terminated:
            raise AgentTerminated()
        session_id = await self._sessions.create_recursive(prompt, parent_id, signal=self._signal)
        self._registry.record(session_id, SessionStatus.RUNNING, title_from_prompt(prompt))
        return session_id

    async def aclose(self) -> None:
        self._stop_polling()
        if self._owns_http and self._http is not None:
            await self._http.close()

    def _new_signal(self) -> AbortSignal:
        signal = AbortSignal()
        if self._hard_abort.aborted:
            signal.abort()
        return signal

    def _cancel(self) -> None:
        logger.debug(f"cancel(): aborting generation {self._generation}")
        self._signal.abort()
        self._signal = self._new_signal()
        self._on_loading(False)
        self._generation += 1

    def _start_polling(self, session_id: str, generation: int) -> None:
        self._stop_polling()
        self._poll_task = asyncio.create_task(self._poll(session_id, generation))

    def _stop_polling(self) -> None:
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()
        self._poll_task = None

    async def _poll(self, session_id: str, generation: int) -> None:
        while True:
            await asyncio.sleep(self._poll_interval)
            if generation != self._generation:
                logger.debug(f"poll: generation {generation} superseded, stopping")
                return
            try:
                details = await self._sessions.get(session_id, signal=self._signal)
            except Exception as e:
                if generation != self._generation or isinstance(e, RequestAborted):
                    logger.debug(f"poll: request for {session_id} aborted")
                else:
                    logger.warning(f"Error polling session {session_id}: {sanitize_error_message(e)}")
                continue
            if generation != self._generation:
                logger.debug(f"poll: generation {generation} superseded, dropping response")
                return

            self._registry.update_from(session_id, details)
            if details.status == SessionStatus.COMPLETED:
                if details.output:
                    self._emit_output(details)
                self._finish()
                return
            if details.status == SessionStatus.FAILED:
                self._emit(system_item(f"Devin AI session failed: {details.error or 'Unknown error'}"))
                self._finish()
                return

    def _emit_output(self, details: SessionDetails) -> None:
        try:
            items = normalize_session_output(details, self._approval_policy)
        except Exception as e:
            message = sanitize_error_message(e)
            logger.error(f"Error processing session output: {message}")
            self._emit(system_item(f"Error processing Devin AI output: {message}"))
            return
        for item in items:
            self._emit(item)

    def _finish(self) -> None:
        self._poll_task = None
        self._on_loading(False)

    async def _present_file(self, session_id: str, url: str, filename: str) -> None:
        try:
            await self._sessions.send_message(
                session_id, f'I\'ve uploaded a file named "{filename}" for you to review.', [url],
                signal=self._signal,
            )
        except Exception as e:
            message = sanitize_error_message(e)
            logger.error(f"Error presenting file {filename}: {message}")
            self._emit(system_item(f"Error presenting file to Devin: {message}"))
            return
        logger.debug(f"Presented file {filename} to session {session_id}")
        self._emit(system_item(f'File "{filename}" has been uploaded and presented to Devin.', prefix="file-upload"))

    def _emit(self, item: ResponseItem) -> None:
        self._on_item(item)
