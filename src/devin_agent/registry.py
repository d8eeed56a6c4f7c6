"""
In-memory session registry: session id -> {status, title}.

A display cache only; the remote service stays authoritative. Entries are
never evicted and live as long as the owning agent.
"""

from typing import Iterator, Optional

from devin_agent.models.session import SessionDetails, SessionEntry

TITLE_MAX_LENGTH = 50


def title_from_prompt(prompt: str) -> str:
    if len(prompt) > TITLE_MAX_LENGTH:
        return prompt[:TITLE_MAX_LENGTH] + "..."
    return prompt


class SessionRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, SessionEntry] = {}

    @property
    def entries(self) -> dict[str, SessionEntry]:
        """The live mapping (not a copy)."""
        return self._entries

    def record(self, session_id: str, status: str, title: str) -> None:
        self._entries[session_id] = SessionEntry(status=status, title=title)

    def update_from(self, session_id: str, details: SessionDetails) -> bool:
        """Record ``details`` only when it carries both a status and a title."""
        if not details.status or not details.title:
            return False
        self.record(session_id, details.status, details.title)
        return True

    def get(self, session_id: str) -> Optional[SessionEntry]:
        return self._entries.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
